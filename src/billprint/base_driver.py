"""Abstract printing contracts and shared models."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from .errors import PrintingError

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class PrinterDescriptor:
    """System printer metadata."""

    name: str
    is_default: bool = False


@dataclass(slots=True)
class PrintJob:
    """One print request; created per dispatch and never persisted."""

    payload: str
    target_printer: Optional[str] = None
    created_at: datetime = field(default_factory=datetime.now)
    uses_default_printer: bool = False


@dataclass(slots=True)
class StrategyAttempt:
    """A strategy that ran and failed."""

    route: str
    error: PrintingError

    def describe(self) -> str:
        return f"{self.route}: {self.error.detail}"


@dataclass(slots=True)
class PrintResult:
    """Outcome of a print submission."""

    success: bool
    route: str
    message: str
    printer_name: Optional[str] = None
    error: Optional[PrintingError] = None
    attempts: List[StrategyAttempt] = field(default_factory=list)

    @classmethod
    def ok(cls, route: str, message: str, printer_name: Optional[str]) -> "PrintResult":
        return cls(success=True, route=route, message=message, printer_name=printer_name)

    @classmethod
    def failed(
        cls,
        error: PrintingError,
        attempts: Optional[List[StrategyAttempt]] = None,
        printer_name: Optional[str] = None,
        route: str = "none",
    ) -> "PrintResult":
        attempts = list(attempts or [])
        if attempts:
            message = "; ".join(attempt.describe() for attempt in attempts)
        else:
            message = error.detail
        return cls(
            success=False,
            route=route,
            message=message,
            printer_name=printer_name,
            error=error,
            attempts=attempts,
        )

    @property
    def reason(self) -> str:
        """Human readable failure reason, most specific error first."""
        if self.success or self.error is None:
            return ""
        if not self.attempts or self.message == self.error.detail:
            return self.error.detail
        return f"{self.error.detail} ({self.message})"


class PrinterDirectory(ABC):
    """Read-only view of the installed printers; never caches."""

    @abstractmethod
    def describe_printers(self) -> List[PrinterDescriptor]:
        """Enumerate installed printers, raising OSQueryFailed on error."""

    @abstractmethod
    def default_printer(self) -> str:
        """Return the default printer name or raise NoDefaultPrinter."""

    def list_printers(self) -> List[str]:
        """Installed printer names; empty when the query fails."""
        try:
            return [device.name for device in self.describe_printers()]
        except PrintingError as exc:
            logger.warning("Printer enumeration failed: %s", exc.detail)
            return []


class SpoolSender(ABC):
    """Sends literal text to a printer queue."""

    route = "raw-spool"

    @abstractmethod
    def submit(self, text: str, target: Optional[str] = None) -> str:
        """Queue text on target (OS default when None); raise SpoolRejected on error."""

    def send(self, text: str, target: Optional[str] = None) -> PrintResult:
        """Queue text and report the outcome instead of raising."""
        target = (target or "").strip() or None
        try:
            message = self.submit(text, target)
        except PrintingError as exc:
            return PrintResult.failed(exc, printer_name=target, route=self.route)
        return PrintResult.ok(route=self.route, message=message, printer_name=target)


class PrintStrategy(ABC):
    """One way of getting a job onto paper."""

    @property
    @abstractmethod
    def route(self) -> str:
        """Short route name used in results and logs."""

    @abstractmethod
    def print_job(self, job: PrintJob, printer_name: str) -> str:
        """Print job on printer_name and return a message, or raise PrintingError."""

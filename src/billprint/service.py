"""Service boundary used by the point-of-sale shell."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, List, Optional

from .base_driver import PrintResult
from .config import PrintSettings
from .dispatcher import PrintDispatcher
from .errors import ErrorKind, NoDefaultPrinter, PlatformUnsupported, PrintingError
from .runner import CommandRunner

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class CommandResult:
    """Ok(value) or Err(error) as handed back to the UI."""

    success: bool
    value: Any = None
    error: Optional[str] = None
    kind: Optional[ErrorKind] = None

    @classmethod
    def ok(cls, value: Any) -> "CommandResult":
        return cls(success=True, value=value)

    @classmethod
    def err(cls, error: PrintingError) -> "CommandResult":
        return cls(success=False, error=error.detail, kind=error.kind)

    @classmethod
    def from_print_result(cls, result: PrintResult) -> "CommandResult":
        if result.success:
            return cls.ok(result.message)
        return cls(success=False, error=result.reason, kind=result.error.kind)


class PrintService:
    """The five print operations exposed to the application."""

    def __init__(
        self,
        settings: Optional[PrintSettings] = None,
        dispatcher: Optional[PrintDispatcher] = None,
        runner: Optional[CommandRunner] = None,
        system: Optional[str] = None,
    ):
        self.dispatcher = dispatcher or PrintDispatcher(
            settings=settings, runner=runner, system=system
        )

    def _unsupported(self) -> Optional[CommandResult]:
        if self.dispatcher.supported:
            return None
        return CommandResult.err(PlatformUnsupported())

    def silent_print(self, markup: str) -> CommandResult:
        result = self.dispatcher.dispatch(markup)
        if result.success:
            logger.info("Silent print via %s: %s", result.route, result.message)
        else:
            logger.error("Silent print failed: %s", result.reason)
        return CommandResult.from_print_result(result)

    def check_printer_available(self) -> CommandResult:
        unsupported = self._unsupported()
        if unsupported is not None:
            return unsupported
        configured = self.dispatcher.settings.printer_name
        if configured:
            return CommandResult.ok(configured in self.dispatcher.directory.list_printers())
        try:
            self.dispatcher.directory.default_printer()
        except NoDefaultPrinter as exc:
            logger.info("No printer available: %s", exc.detail)
            return CommandResult.ok(False)
        return CommandResult.ok(True)

    def get_default_printer(self) -> CommandResult:
        unsupported = self._unsupported()
        if unsupported is not None:
            return unsupported
        try:
            return CommandResult.ok(self.dispatcher.directory.default_printer())
        except PrintingError as exc:
            return CommandResult.err(exc)

    def list_printers(self) -> CommandResult:
        unsupported = self._unsupported()
        if unsupported is not None:
            return unsupported
        names: List[str] = self.dispatcher.directory.list_printers()
        return CommandResult.ok(names)

    def print_raw_text(self, text: str, printer_name: Optional[str] = None) -> CommandResult:
        unsupported = self._unsupported()
        if unsupported is not None:
            return unsupported
        result = self.dispatcher.sender.send(text or "", printer_name)
        return CommandResult.from_print_result(result)


_DEFAULT_SERVICE: Optional[PrintService] = None
_DEFAULT_SERVICE_LOCK = threading.Lock()


def get_print_service() -> PrintService:
    """Process-wide service built from the environment on first use."""
    global _DEFAULT_SERVICE
    with _DEFAULT_SERVICE_LOCK:
        if _DEFAULT_SERVICE is None:
            _DEFAULT_SERVICE = PrintService(settings=PrintSettings.from_env())
        return _DEFAULT_SERVICE


def silent_print(markup: str) -> CommandResult:
    return get_print_service().silent_print(markup)


def check_printer_available() -> CommandResult:
    return get_print_service().check_printer_available()


def get_default_printer() -> CommandResult:
    return get_print_service().get_default_printer()


def list_printers() -> CommandResult:
    return get_print_service().list_printers()


def print_raw_text(text: str, printer_name: Optional[str] = None) -> CommandResult:
    return get_print_service().print_raw_text(text, printer_name)

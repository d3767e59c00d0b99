"""Print dispatcher: target resolution, printer guard and strategy chain."""

from __future__ import annotations

import logging
import threading
from typing import List, Optional, Sequence, Tuple

from .base_driver import (
    PrinterDirectory,
    PrintJob,
    PrintResult,
    PrintStrategy,
    SpoolSender,
    StrategyAttempt,
)
from .config import PrintSettings
from .errors import (
    EngineFailed,
    EngineTimeout,
    EngineUnavailable,
    PlatformUnsupported,
    PrintingError,
    SpoolRejected,
    TempFileIO,
    UnsuitablePrinter,
)
from .platforms import current_system, get_printer_directory, get_spool_sender, is_supported
from .runner import CommandRunner
from .strategies import build_strategies

logger = logging.getLogger(__name__)

# Jobs share one temp file, so only one dispatch may run at a time per process.
_PRINT_LOCK = threading.Lock()

# Most specific first; the surfaced error of a failed chain is the earliest match.
_FAILURE_PRIORITY: Tuple[type, ...] = (
    SpoolRejected,
    EngineTimeout,
    EngineFailed,
    TempFileIO,
    EngineUnavailable,
)


def find_virtual_match(printer_name: str, patterns: Sequence[str]) -> Optional[str]:
    """Return the virtual-printer pattern contained in printer_name, if any."""
    lowered = printer_name.lower()
    for pattern in patterns:
        if pattern and pattern.lower() in lowered:
            return pattern
    return None


def most_specific_error(attempts: Sequence[StrategyAttempt]) -> PrintingError:
    for error_type in _FAILURE_PRIORITY:
        for attempt in attempts:
            if isinstance(attempt.error, error_type):
                return attempt.error
    return attempts[-1].error


class PrintDispatcher:
    """Facade that turns one markup bill into one print attempt chain."""

    def __init__(
        self,
        settings: Optional[PrintSettings] = None,
        directory: Optional[PrinterDirectory] = None,
        sender: Optional[SpoolSender] = None,
        strategies: Optional[List[PrintStrategy]] = None,
        runner: Optional[CommandRunner] = None,
        system: Optional[str] = None,
    ):
        self.settings = (settings or PrintSettings()).normalized()
        self.system = (system or current_system()).lower()
        self.directory = directory or get_printer_directory(
            runner=runner, system=self.system, timeout=self.settings.query_timeout
        )
        self.sender = sender or get_spool_sender(
            runner=runner, system=self.system, timeout=self.settings.spool_timeout
        )
        if strategies is None:
            strategies = build_strategies(
                self.settings.strategies, self.settings, self.sender, runner=runner
            )
        self.strategies = strategies

    @property
    def supported(self) -> bool:
        return is_supported(self.system)

    def resolve_target(self, explicit_target: Optional[str] = None) -> Tuple[str, bool]:
        """
        Pick the job's printer: explicit, then configured, then the OS default.

        Returns (printer_name, uses_default_printer). The default is looked up
        again on every call; the operator can change it between bills.
        """
        for candidate in (explicit_target, self.settings.printer_name):
            name = (candidate or "").strip()
            if name:
                return name, False
        return self.directory.default_printer(), True

    def check_printer(self, printer_name: str) -> None:
        match = find_virtual_match(printer_name, self.settings.virtual_printers)
        if match is not None:
            raise UnsuitablePrinter(
                f"Printer '{printer_name}' looks like a virtual printer ({match}); "
                "set a physical receipt printer as default"
            )

    def _run_chain(self, job: PrintJob, printer_name: str) -> PrintResult:
        attempts: List[StrategyAttempt] = []
        for strategy in self.strategies:
            try:
                message = strategy.print_job(job, printer_name)
            except PrintingError as exc:
                logger.warning("Strategy %s failed: %s", strategy.route, exc.detail)
                attempts.append(StrategyAttempt(route=strategy.route, error=exc))
                continue
            logger.info("Printed via %s on %s", strategy.route, printer_name)
            return PrintResult.ok(route=strategy.route, message=message, printer_name=printer_name)

        if not attempts:
            return PrintResult.failed(
                EngineUnavailable("No print strategy configured"), printer_name=printer_name
            )
        error = most_specific_error(attempts)
        logger.error("All print strategies failed for %s: %s", printer_name, error.detail)
        return PrintResult.failed(error, attempts, printer_name=printer_name)

    def dispatch(self, markup: str, explicit_target: Optional[str] = None) -> PrintResult:
        """Print markup silently; every failure comes back as a failed PrintResult."""
        if not self.supported:
            return PrintResult.failed(PlatformUnsupported())

        try:
            printer_name, uses_default = self.resolve_target(explicit_target)
            self.check_printer(printer_name)
        except PrintingError as exc:
            logger.error("Print refused: %s", exc.detail)
            return PrintResult.failed(exc)

        job = PrintJob(
            payload=markup or "",
            target_printer=printer_name,
            uses_default_printer=uses_default,
        )
        with _PRINT_LOCK:
            return self._run_chain(job, printer_name)

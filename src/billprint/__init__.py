"""Silent receipt printing entrypoints."""

from .base_driver import PrintJob, PrintResult, PrinterDescriptor, StrategyAttempt
from .config import PrintSettings
from .dispatcher import PrintDispatcher
from .errors import (
    EngineFailed,
    EngineTimeout,
    EngineUnavailable,
    ErrorKind,
    NoDefaultPrinter,
    OSQueryFailed,
    PlatformUnsupported,
    PrintingError,
    SpoolRejected,
    TempFileIO,
    UnsuitablePrinter,
)
from .service import (
    CommandResult,
    PrintService,
    check_printer_available,
    get_default_printer,
    get_print_service,
    list_printers,
    print_raw_text,
    silent_print,
)
from .text_extract import RECEIPT_PADDING, extract

__all__ = [
    "PrintDispatcher",
    "PrintService",
    "PrintSettings",
    "PrintJob",
    "PrintResult",
    "PrinterDescriptor",
    "StrategyAttempt",
    "CommandResult",
    "extract",
    "RECEIPT_PADDING",
    "silent_print",
    "check_printer_available",
    "get_default_printer",
    "list_printers",
    "print_raw_text",
    "get_print_service",
    "ErrorKind",
    "PrintingError",
    "NoDefaultPrinter",
    "UnsuitablePrinter",
    "TempFileIO",
    "EngineUnavailable",
    "EngineTimeout",
    "EngineFailed",
    "SpoolRejected",
    "OSQueryFailed",
    "PlatformUnsupported",
]

"""Printing subsystem exceptions."""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Tag carried by every printing failure."""

    NO_DEFAULT_PRINTER = "NoDefaultPrinter"
    UNSUITABLE_PRINTER = "UnsuitablePrinter"
    TEMP_FILE_IO = "TempFileIO"
    ENGINE_UNAVAILABLE = "EngineUnavailable"
    ENGINE_TIMEOUT = "EngineTimeout"
    ENGINE_FAILED = "EngineFailed"
    SPOOL_REJECTED = "SpoolRejected"
    OS_QUERY_FAILED = "OSQueryFailed"
    PLATFORM_UNSUPPORTED = "PlatformUnsupported"


class PrintingError(RuntimeError):
    """Base error for printing subsystem."""

    kind: ErrorKind
    default_detail = "Printing failed."

    def __init__(self, detail: str = ""):
        self.detail = (detail or "").strip() or self.default_detail
        super().__init__(self.detail)


class NoDefaultPrinter(PrintingError):
    """Raised when no explicit target exists and no default printer is set."""

    kind = ErrorKind.NO_DEFAULT_PRINTER
    default_detail = "No default printer configured."


class UnsuitablePrinter(PrintingError):
    """Raised when the target is a virtual (file or note) printer."""

    kind = ErrorKind.UNSUITABLE_PRINTER
    default_detail = "Target printer is a virtual printer."


class TempFileIO(PrintingError):
    """Raised when the job temp file cannot be created, written or flushed."""

    kind = ErrorKind.TEMP_FILE_IO
    default_detail = "Failed to write temp file."


class EngineUnavailable(PrintingError):
    """Raised when no render engine binary can be used for the job."""

    kind = ErrorKind.ENGINE_UNAVAILABLE
    default_detail = "Render engine not found."


class EngineTimeout(PrintingError):
    """Raised when the render engine exceeds its execution timeout."""

    kind = ErrorKind.ENGINE_TIMEOUT
    default_detail = "Render engine timed out."


class EngineFailed(PrintingError):
    """Raised when the render engine exits with an error status."""

    kind = ErrorKind.ENGINE_FAILED
    default_detail = "Render engine failed."


class SpoolRejected(PrintingError):
    """Raised when the OS spooler reports an error for a text job."""

    kind = ErrorKind.SPOOL_REJECTED
    default_detail = "Spooler rejected the job."


class OSQueryFailed(PrintingError):
    """Raised when the printer enumeration call itself errors."""

    kind = ErrorKind.OS_QUERY_FAILED
    default_detail = "Printer query failed."


class PlatformUnsupported(PrintingError):
    """Raised on every operation when the platform has no print backend."""

    kind = ErrorKind.PLATFORM_UNSUPPORTED
    default_detail = "Silent printing is only supported on Windows."

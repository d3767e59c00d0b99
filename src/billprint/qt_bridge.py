"""Qt print bridge: lay out bill HTML with QTextDocument and send it to QPrinter."""

from __future__ import annotations

from PySide6.QtGui import QTextDocument
from PySide6.QtPrintSupport import QPrinter, QPrinterInfo
from PySide6.QtWidgets import QApplication

from .base_driver import PrintJob, PrintStrategy
from .errors import EngineFailed, EngineUnavailable

_APP_INSTANCE = None


def _ensure_qapplication() -> None:
    global _APP_INSTANCE
    app = QApplication.instance()
    if app is None:
        _APP_INSTANCE = QApplication([])
    else:
        _APP_INSTANCE = app


def _printer_known(printer_name: str) -> bool:
    return printer_name in QPrinterInfo.availablePrinterNames()


class QtDocumentStrategy(PrintStrategy):
    """Renders markup in-process; no external engine and no dialog."""

    def __init__(self, job_name: str = "billprint_receipt"):
        self.job_name = job_name

    @property
    def route(self) -> str:
        return "qt-document"

    def print_job(self, job: PrintJob, printer_name: str) -> str:
        _ensure_qapplication()
        if not _printer_known(printer_name):
            raise EngineUnavailable(f"Qt does not see printer '{printer_name}'")

        printer = QPrinter(QPrinter.HighResolution)
        printer.setPrinterName(printer_name)
        printer.setDocName(self.job_name)
        if not printer.isValid():
            raise EngineUnavailable(f"Cannot open printer context: {printer_name}")

        document = QTextDocument()
        document.setHtml(job.payload)
        try:
            document.print_(printer)
        except Exception as exc:
            raise EngineFailed(f"Qt document print failed: {exc}") from exc
        return f"Print job sent to {printer_name}"

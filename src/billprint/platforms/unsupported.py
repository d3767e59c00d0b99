"""Backends for platforms without silent printing support."""

from __future__ import annotations

from typing import List, Optional

from ..base_driver import PrinterDescriptor, PrinterDirectory, SpoolSender
from ..errors import PlatformUnsupported


class UnsupportedPrinterDirectory(PrinterDirectory):
    """Fails every query without touching the OS."""

    def __init__(self, system: str = ""):
        self.system = system

    def _error(self) -> PlatformUnsupported:
        suffix = f" (running on {self.system})" if self.system else ""
        return PlatformUnsupported(f"{PlatformUnsupported.default_detail}{suffix}")

    def describe_printers(self) -> List[PrinterDescriptor]:
        raise self._error()

    def list_printers(self) -> List[str]:
        raise self._error()

    def default_printer(self) -> str:
        raise self._error()


class UnsupportedSpoolSender(SpoolSender):
    def __init__(self, system: str = ""):
        self.system = system

    def submit(self, text: str, target: Optional[str] = None) -> str:
        suffix = f" (running on {self.system})" if self.system else ""
        raise PlatformUnsupported(f"{PlatformUnsupported.default_detail}{suffix}")

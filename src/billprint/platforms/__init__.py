"""Platform-specific printer directory and spool backends."""

from __future__ import annotations

import platform
from typing import Optional

from ..base_driver import PrinterDirectory, SpoolSender
from ..runner import CommandRunner
from .unsupported import UnsupportedPrinterDirectory, UnsupportedSpoolSender
from .win_directory import WindowsPrinterDirectory
from .win_spooler import WindowsSpoolSender

SUPPORTED_SYSTEM = "windows"


def current_system() -> str:
    return platform.system().lower()


def is_supported(system: Optional[str] = None) -> bool:
    return (system or current_system()).lower() == SUPPORTED_SYSTEM


def get_printer_directory(
    runner: Optional[CommandRunner] = None,
    system: Optional[str] = None,
    timeout: float = 6.0,
) -> PrinterDirectory:
    """Factory for the platform printer directory."""
    system = (system or current_system()).lower()
    if is_supported(system):
        return WindowsPrinterDirectory(runner=runner, timeout=timeout)
    return UnsupportedPrinterDirectory(system)


def get_spool_sender(
    runner: Optional[CommandRunner] = None,
    system: Optional[str] = None,
    timeout: float = 30.0,
) -> SpoolSender:
    """Factory for the platform raw spool sender."""
    system = (system or current_system()).lower()
    if is_supported(system):
        return WindowsSpoolSender(runner=runner, timeout=timeout)
    return UnsupportedSpoolSender(system)


__all__ = [
    "SUPPORTED_SYSTEM",
    "current_system",
    "is_supported",
    "get_printer_directory",
    "get_spool_sender",
    "WindowsPrinterDirectory",
    "WindowsSpoolSender",
    "UnsupportedPrinterDirectory",
    "UnsupportedSpoolSender",
]

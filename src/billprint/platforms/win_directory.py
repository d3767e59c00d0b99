"""Windows printer enumeration through CIM (Win32_Printer)."""

from __future__ import annotations

import json
import logging
import subprocess
from typing import List, Optional

from ..base_driver import PrinterDescriptor, PrinterDirectory
from ..errors import NoDefaultPrinter, OSQueryFailed
from ..runner import CommandRunner, SubprocessRunner
from .powershell import run_script

logger = logging.getLogger(__name__)

# PowerShell 5.1 writes the OEM code page unless told otherwise; the runner decodes UTF-8.
_UTF8_OUTPUT = "[Console]::OutputEncoding = [System.Text.Encoding]::UTF8; "

_LIST_SCRIPT = (
    _UTF8_OUTPUT
    + "$list = Get-CimInstance -ClassName Win32_Printer | Select-Object Name, Default; "
    + "if ($list) { $list | ConvertTo-Json -Compress } else { '[]' }"
)
_DEFAULT_SCRIPT = (
    _UTF8_OUTPUT
    + "(Get-CimInstance -ClassName Win32_Printer | "
    + "Where-Object {$_.Default -eq $true}).Name"
)


def _is_true(value: object) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("true", "1", "yes")


def parse_printer_json(payload: str) -> List[PrinterDescriptor]:
    """Parse ConvertTo-Json output (object or array) into descriptors."""
    data = json.loads(payload or "[]")
    if isinstance(data, dict):
        data = [data]
    devices: List[PrinterDescriptor] = []
    seen = set()
    for item in data or []:
        if not isinstance(item, dict):
            continue
        name = str(item.get("Name") or "").strip()
        if not name or name in seen:
            continue
        seen.add(name)
        devices.append(PrinterDescriptor(name=name, is_default=_is_true(item.get("Default"))))
    return devices


class WindowsPrinterDirectory(PrinterDirectory):
    """Queries the spooler on every call; the operator may switch defaults between bills."""

    def __init__(self, runner: Optional[CommandRunner] = None, timeout: float = 6.0):
        self.runner = runner or SubprocessRunner()
        self.timeout = timeout

    def _query(self, script: str) -> str:
        try:
            output = run_script(self.runner, script, timeout=self.timeout)
        except subprocess.TimeoutExpired as exc:
            raise OSQueryFailed(f"Printer query timed out after {self.timeout:g}s") from exc
        except OSError as exc:
            raise OSQueryFailed(f"Failed to run PowerShell: {exc}") from exc
        if not output.succeeded:
            detail = output.stderr.strip() or f"exit status {output.returncode}"
            raise OSQueryFailed(f"Printer query failed: {detail}")
        return output.stdout.strip()

    def describe_printers(self) -> List[PrinterDescriptor]:
        payload = self._query(_LIST_SCRIPT)
        try:
            devices = parse_printer_json(payload)
        except ValueError as exc:
            raise OSQueryFailed(f"Unreadable printer list: {exc}") from exc
        logger.debug("Found %s printer(s)", len(devices))
        return devices

    def default_printer(self) -> str:
        try:
            stdout = self._query(_DEFAULT_SCRIPT)
        except OSQueryFailed as exc:
            raise NoDefaultPrinter(f"Default printer lookup failed: {exc.detail}") from exc
        names = [line.strip() for line in stdout.splitlines() if line.strip()]
        if not names:
            raise NoDefaultPrinter()
        logger.info("Default printer: %s", names[0])
        return names[0]

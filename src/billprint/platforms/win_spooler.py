"""Windows raw text spooling through PowerShell Out-Printer."""

from __future__ import annotations

import logging
import os
import subprocess
import tempfile
from typing import Optional

from ..base_driver import SpoolSender
from ..errors import SpoolRejected, TempFileIO
from ..runner import CommandOutput, CommandRunner, SubprocessRunner
from .powershell import quote_literal, run_script

logger = logging.getLogger(__name__)


def build_spool_script(source_path: str, target: Optional[str] = None) -> str:
    """PowerShell script that pipes the text file at source_path, verbatim, into Out-Printer."""
    out_printer = "Out-Printer"
    if target:
        out_printer += f" -Name {quote_literal(target)}"
    return (
        "$ErrorActionPreference = 'Stop'\n"
        "[Console]::OutputEncoding = [System.Text.Encoding]::UTF8\n"
        f"Get-Content -LiteralPath {quote_literal(source_path)} -Raw -Encoding UTF8 | {out_printer}\n"
    )


class WindowsSpoolSender(SpoolSender):
    """
    Sends literal text to a Windows printer queue.

    The text travels through a per-job UTF-8 file rather than the command
    line, which Windows caps at 32767 characters.
    """

    def __init__(
        self,
        runner: Optional[CommandRunner] = None,
        timeout: float = 30.0,
        spool_dir: Optional[str] = None,
    ):
        self.runner = runner or SubprocessRunner()
        self.timeout = timeout
        self.spool_dir = spool_dir

    def _write_spool_file(self, text: str) -> str:
        try:
            fd, path = tempfile.mkstemp(
                prefix="billprint_spool_", suffix=".txt", dir=self.spool_dir
            )
            with os.fdopen(fd, "w", encoding="utf-8", newline="") as handle:
                handle.write(text.replace("\x00", ""))
        except OSError as exc:
            raise TempFileIO(f"Failed to write spool file: {exc}") from exc
        return path

    def _run(self, script: str) -> CommandOutput:
        try:
            return run_script(self.runner, script, timeout=self.timeout, encoded=True)
        except subprocess.TimeoutExpired as exc:
            raise SpoolRejected(
                f"Spooler did not answer within {self.timeout:g}s"
            ) from exc
        except OSError as exc:
            raise SpoolRejected(f"Failed to run PowerShell: {exc}") from exc

    def submit(self, text: str, target: Optional[str] = None) -> str:
        target = (target or "").strip() or None
        destination = target or "default printer"
        path = self._write_spool_file(text)
        logger.info("Spooling %s chars of text to %s", len(text), destination)
        try:
            output = self._run(build_spool_script(path, target))
        finally:
            try:
                os.remove(path)
            except OSError as exc:
                logger.warning("Could not remove spool file %s: %s", path, exc)

        stderr = output.stderr.strip()
        if stderr:
            logger.error("Spool stderr: %s", stderr)
            raise SpoolRejected(stderr)
        if not output.succeeded:
            # Out-Printer gives no completion signal; an empty error stream counts as sent.
            logger.warning(
                "Spool exited with status %s but reported no error", output.returncode
            )
        return f"Print job sent to {destination}"

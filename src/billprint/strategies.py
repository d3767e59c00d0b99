"""Print strategies tried in order by the dispatcher."""

from __future__ import annotations

import logging
import os
import subprocess
from pathlib import Path
from typing import List, Optional, Sequence

from .base_driver import PrintJob, PrintStrategy, SpoolSender
from .config import DEFAULT_ENGINE_PROGIDS, PrintSettings
from .errors import EngineFailed, EngineTimeout, EngineUnavailable, TempFileIO
from .platforms.powershell import quote_literal, run_script
from .runner import CommandRunner, SubprocessRunner
from .text_extract import extract

logger = logging.getLogger(__name__)

# Exit status of the engine script when no listed COM server can be created.
ENGINE_MISSING_EXIT = 3
# OLECMDID_PRINT with OLECMDEXECOPT_DONTPROMPTUSER: print to the default printer, no dialog.
_EXECWB_PRINT_SILENT = "6, 2"


def build_engine_script(
    uri: str,
    progids: Sequence[str],
    load_timeout: float,
    settle_seconds: float,
) -> str:
    """
    PowerShell script that prints ``uri`` through a hidden COM browser.

    The engine is never shown, loads the page, prints it without a prompt,
    waits for the spooler to take the job and then quits, so the script
    always terminates on its own.
    """
    candidates = ", ".join(quote_literal(p) for p in progids)
    return (
        "$ErrorActionPreference = 'Stop'\n"
        "[Console]::OutputEncoding = [System.Text.Encoding]::UTF8\n"
        "$engine = $null\n"
        "$lastError = 'none configured'\n"
        f"foreach ($progId in @({candidates})) {{\n"
        "    try { $engine = New-Object -ComObject $progId; break }\n"
        "    catch { $lastError = \"${progId}: $($_.Exception.Message)\" }\n"
        "}\n"
        "if (-not $engine) {\n"
        "    [Console]::Error.WriteLine(\"No COM render engine available ($lastError)\")\n"
        f"    exit {ENGINE_MISSING_EXIT}\n"
        "}\n"
        "try {\n"
        "    $engine.Visible = $false\n"
        "    $engine.Silent = $true\n"
        f"    $engine.Navigate({quote_literal(uri)})\n"
        f"    $deadline = (Get-Date).AddSeconds({load_timeout:g})\n"
        "    while ($engine.Busy -or $engine.ReadyState -ne 4) {\n"
        "        if ((Get-Date) -gt $deadline) { throw 'Bill page did not finish loading' }\n"
        "        Start-Sleep -Milliseconds 200\n"
        "    }\n"
        f"    $engine.ExecWB({_EXECWB_PRINT_SILENT})\n"
        f"    Start-Sleep -Milliseconds {int(settle_seconds * 1000)}\n"
        "    'SUCCESS'\n"
        "}\n"
        "finally {\n"
        "    $engine.Quit()\n"
        "    [void][System.Runtime.InteropServices.Marshal]::ReleaseComObject($engine)\n"
        "}\n"
    )


class EngineRenderStrategy(PrintStrategy):
    """Prints the unmodified markup through a hidden COM browser engine."""

    def __init__(
        self,
        runner: Optional[CommandRunner] = None,
        progids: Sequence[str] = DEFAULT_ENGINE_PROGIDS,
        temp_path: str = "",
        timeout: float = 10.0,
        settle_seconds: float = 3.0,
    ):
        self.runner = runner or SubprocessRunner()
        self.progids = list(progids)
        self.temp_path = temp_path or PrintSettings().temp_path
        self.timeout = timeout
        self.settle_seconds = settle_seconds

    @property
    def route(self) -> str:
        return "engine"

    @property
    def load_timeout(self) -> float:
        # Leave room for the print hand-off and Quit() inside the process timeout.
        return max(1.0, self.timeout - self.settle_seconds - 2.0)

    def write_temp_file(self, markup: str) -> str:
        """Overwrite the shared temp file with markup and return its path."""
        path = self.temp_path
        try:
            os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
            with open(path, "w", encoding="utf-8") as handle:
                handle.write(markup)
                handle.flush()
        except OSError as exc:
            raise TempFileIO(f"Failed to write temp file {path}: {exc}") from exc
        return path

    def build_script(self, path: str) -> str:
        return build_engine_script(
            Path(path).resolve().as_uri(),
            self.progids,
            load_timeout=self.load_timeout,
            settle_seconds=self.settle_seconds,
        )

    def print_job(self, job: PrintJob, printer_name: str) -> str:
        if not job.uses_default_printer:
            raise EngineUnavailable(
                f"Render engine only prints to the system default printer, not '{printer_name}'"
            )
        if not self.progids:
            raise EngineUnavailable("No render engine configured")
        path = self.write_temp_file(job.payload)
        logger.info("Rendering %s through %s", path, ", ".join(self.progids))
        try:
            output = run_script(
                self.runner, self.build_script(path), timeout=self.timeout, encoded=True
            )
        except subprocess.TimeoutExpired as exc:
            logger.warning("Render engine still running after %ss; left detached", self.timeout)
            raise EngineTimeout(
                f"Render engine did not finish within {self.timeout:g}s"
            ) from exc
        except OSError as exc:
            raise EngineUnavailable(f"Failed to start PowerShell: {exc}") from exc

        if output.returncode == ENGINE_MISSING_EXIT:
            raise EngineUnavailable(output.stderr.strip() or "No COM render engine available")
        if not output.succeeded:
            detail = output.stderr.strip() or f"exit status {output.returncode}"
            raise EngineFailed(f"Render engine failed: {detail}")
        if "SUCCESS" not in output.stdout:
            logger.warning("Render engine exited cleanly without confirming the print")
        return f"Print job sent to {printer_name}"


class RawTextStrategy(PrintStrategy):
    """Extracts printable text and spools it as-is; the dot-matrix path."""

    def __init__(self, sender: SpoolSender):
        self.sender = sender

    @property
    def route(self) -> str:
        return "raw-text"

    def print_job(self, job: PrintJob, printer_name: str) -> str:
        text = extract(job.payload)
        return self.sender.submit(text, printer_name)


def build_strategies(
    names: Sequence[str],
    settings: PrintSettings,
    sender: SpoolSender,
    runner: Optional[CommandRunner] = None,
) -> List[PrintStrategy]:
    """Instantiate the configured strategy chain, in order."""
    strategies: List[PrintStrategy] = []
    for name in names:
        if name == "engine":
            strategies.append(
                EngineRenderStrategy(
                    runner=runner,
                    progids=settings.engine_progids,
                    temp_path=settings.temp_path,
                    timeout=settings.engine_timeout,
                )
            )
        elif name == "raw":
            strategies.append(RawTextStrategy(sender))
        elif name == "qt":
            from .qt_bridge import QtDocumentStrategy

            strategies.append(QtDocumentStrategy())
        else:
            logger.warning("Ignoring unknown print strategy %r", name)
    return strategies

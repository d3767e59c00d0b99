# -*- coding: utf-8 -*-
"""In-memory doubles for printers, spooler and OS processes."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import List, Optional

SRC = Path(__file__).resolve().parents[1] / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from billprint.base_driver import (
    PrinterDescriptor,
    PrinterDirectory,
    PrintJob,
    PrintStrategy,
    SpoolSender,
)
from billprint.errors import NoDefaultPrinter, OSQueryFailed, PrintingError
from billprint.runner import CommandOutput, CommandRunner


class FakeRunner(CommandRunner):
    """Replays queued outputs (or raises queued exceptions) in order."""

    def __init__(self, responses=None):
        self.responses = list(responses or [])
        self.calls: List[tuple] = []

    def run(self, args, timeout=None) -> CommandOutput:
        self.calls.append((list(args), timeout))
        if not self.responses:
            return CommandOutput(returncode=0)
        response = self.responses.pop(0)
        if isinstance(response, BaseException):
            raise response
        return response


class FakeDirectory(PrinterDirectory):
    def __init__(self, printers=None, default: Optional[str] = None, broken: bool = False):
        self.printers = list(printers or [])
        self.default = default
        self.broken = broken
        self.default_calls = 0

    def describe_printers(self) -> List[PrinterDescriptor]:
        if self.broken:
            raise OSQueryFailed("spooler service stopped")
        return [PrinterDescriptor(name=n, is_default=(n == self.default)) for n in self.printers]

    def default_printer(self) -> str:
        self.default_calls += 1
        if self.broken or not self.default:
            raise NoDefaultPrinter()
        return self.default


class FakeSender(SpoolSender):
    def __init__(self, error: Optional[PrintingError] = None):
        self.error = error
        self.sent: List[tuple] = []

    def submit(self, text: str, target: Optional[str] = None) -> str:
        self.sent.append((text, target))
        if self.error is not None:
            raise self.error
        return f"Print job sent to {target or 'default printer'}"


class RecordingStrategy(PrintStrategy):
    def __init__(self, name: str, error: Optional[PrintingError] = None):
        self.name = name
        self.error = error
        self.jobs: List[tuple] = []

    @property
    def route(self) -> str:
        return self.name

    def print_job(self, job: PrintJob, printer_name: str) -> str:
        self.jobs.append((job, printer_name))
        if self.error is not None:
            raise self.error
        return f"{self.name} printed on {printer_name}"

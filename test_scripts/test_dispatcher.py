# -*- coding: utf-8 -*-
"""Strategy chain, printer resolution and guards of the print dispatcher."""

from __future__ import annotations

import os
import subprocess
import tempfile
import threading
import time
from pathlib import Path

from fakes import FakeDirectory, FakeRunner, FakeSender, RecordingStrategy

from billprint.base_driver import PrintJob, StrategyAttempt
from billprint.config import PrintSettings
from billprint.dispatcher import PrintDispatcher, find_virtual_match, most_specific_error
from billprint.errors import (
    EngineFailed,
    EngineTimeout,
    EngineUnavailable,
    ErrorKind,
    SpoolRejected,
    TempFileIO,
)
from billprint.platforms.powershell import decode_script
from billprint.runner import CommandOutput
from billprint.text_extract import RECEIPT_PADDING

BILL = "<html><body><pre>TOTAL: 100</pre></body></html>"
NO_ENGINE = "No COM render engine available (InternetExplorer.Application: Class not registered)"


def _settings(tmp: str, **overrides) -> PrintSettings:
    return PrintSettings(temp_dir=tmp, **overrides)


def test_end_to_end_raw_fallback_on_dot_matrix() -> None:
    with tempfile.TemporaryDirectory() as tmp:
        sender = FakeSender()
        dispatcher = PrintDispatcher(
            settings=_settings(tmp),
            directory=FakeDirectory(["TVS MSP 250"], default="TVS MSP 250"),
            sender=sender,
            runner=FakeRunner([CommandOutput(3, "", NO_ENGINE)]),
            system="Windows",
        )
        result = dispatcher.dispatch(BILL)

    assert result.success
    assert result.route == "raw-text"
    assert result.printer_name == "TVS MSP 250"
    assert "TVS MSP 250" in result.message
    assert sender.sent == [("TOTAL: 100" + RECEIPT_PADDING, "TVS MSP 250")]


def test_engine_prints_markup_through_hidden_com_browser() -> None:
    with tempfile.TemporaryDirectory() as tmp:
        runner = FakeRunner([CommandOutput(0, "SUCCESS\r\n")])
        sender = FakeSender()
        dispatcher = PrintDispatcher(
            settings=_settings(tmp),
            directory=FakeDirectory(["HP LaserJet"], default="HP LaserJet"),
            sender=sender,
            runner=runner,
            system="windows",
        )
        result = dispatcher.dispatch(BILL)

        temp_file = Path(tmp) / "billprint_receipt.html"
        assert temp_file.read_text(encoding="utf-8") == BILL
        uri = temp_file.resolve().as_uri()

    assert result.success
    assert result.route == "engine"
    assert sender.sent == []
    args, timeout = runner.calls[0]
    assert args[0] == "powershell"
    assert "-EncodedCommand" in args
    assert timeout == 10.0

    script = decode_script(args[-1])
    assert "@('InternetExplorer.Application')" in script
    assert "$engine.Visible = $false" in script
    assert f"$engine.Navigate('{uri}')" in script
    assert "$engine.ExecWB(6, 2)" in script
    assert "$engine.Quit()" in script
    # Page loading gives up well before the process timeout.
    assert "AddSeconds(5)" in script


def test_missing_com_engine_falls_back_without_timeout() -> None:
    with tempfile.TemporaryDirectory() as tmp:
        runner = FakeRunner([CommandOutput(3, "", NO_ENGINE + "\r\n")])
        dispatcher = PrintDispatcher(
            settings=_settings(tmp),
            directory=FakeDirectory(default="TVS MSP 250"),
            sender=FakeSender(error=SpoolRejected("Printer is offline")),
            runner=runner,
            system="windows",
        )
        result = dispatcher.dispatch(BILL)

    assert isinstance(result.attempts[0].error, EngineUnavailable)
    assert result.attempts[0].error.detail == NO_ENGINE
    assert result.error.kind is ErrorKind.SPOOL_REJECTED


def test_virtual_printer_is_refused_before_any_strategy() -> None:
    for name in ("Microsoft Print to PDF", "my pdf writer", "OneNote for Windows 10", "Microsoft XPS Document Writer"):
        engine = RecordingStrategy("engine")
        raw = RecordingStrategy("raw-text")
        directory = FakeDirectory(default="TVS MSP 250")
        dispatcher = PrintDispatcher(
            directory=directory,
            sender=FakeSender(),
            strategies=[engine, raw],
            system="windows",
        )
        result = dispatcher.dispatch(BILL, explicit_target=name)

        assert not result.success
        assert result.error.kind is ErrorKind.UNSUITABLE_PRINTER
        assert engine.jobs == [] and raw.jobs == []
        assert directory.default_calls == 0


def test_virtual_default_printer_is_refused() -> None:
    dispatcher = PrintDispatcher(
        directory=FakeDirectory(default="Microsoft Print to PDF"),
        sender=FakeSender(),
        strategies=[RecordingStrategy("raw-text")],
        system="windows",
    )
    assert dispatcher.dispatch(BILL).error.kind is ErrorKind.UNSUITABLE_PRINTER


def test_no_default_printer_fails_fast_without_temp_file() -> None:
    with tempfile.TemporaryDirectory() as tmp:
        runner = FakeRunner()
        sender = FakeSender()
        dispatcher = PrintDispatcher(
            settings=_settings(tmp),
            directory=FakeDirectory(default=None),
            sender=sender,
            runner=runner,
            system="windows",
        )
        result = dispatcher.dispatch(BILL)

        assert not result.success
        assert result.error.kind is ErrorKind.NO_DEFAULT_PRINTER
        assert os.listdir(tmp) == []
    assert runner.calls == []
    assert sender.sent == []


def test_explicit_target_skips_default_only_engine() -> None:
    with tempfile.TemporaryDirectory() as tmp:
        runner = FakeRunner()
        sender = FakeSender()
        directory = FakeDirectory(["EPSON LX-310", "HP"], default="HP")
        dispatcher = PrintDispatcher(
            settings=_settings(tmp),
            directory=directory,
            sender=sender,
            runner=runner,
            system="windows",
        )
        result = dispatcher.dispatch(BILL, explicit_target="  EPSON LX-310 ")

        assert os.listdir(tmp) == []
    assert result.success
    assert result.route == "raw-text"
    assert sender.sent[0][1] == "EPSON LX-310"
    assert runner.calls == []
    assert directory.default_calls == 0
    assert result.attempts == []


def test_configured_printer_is_used_when_no_explicit_target() -> None:
    raw = RecordingStrategy("raw-text")
    directory = FakeDirectory(default="HP")
    dispatcher = PrintDispatcher(
        settings=PrintSettings(printer_name="TVS MSP 250"),
        directory=directory,
        sender=FakeSender(),
        strategies=[raw],
        system="windows",
    )
    result = dispatcher.dispatch(BILL)
    assert result.printer_name == "TVS MSP 250"
    assert directory.default_calls == 0
    job, printer_name = raw.jobs[0]
    assert isinstance(job, PrintJob)
    assert job.uses_default_printer is False
    assert job.target_printer == printer_name == "TVS MSP 250"


def test_default_printer_is_resolved_on_every_dispatch() -> None:
    directory = FakeDirectory(default="TVS MSP 250")
    dispatcher = PrintDispatcher(
        directory=directory,
        sender=FakeSender(),
        strategies=[RecordingStrategy("raw-text")],
        system="windows",
    )
    first = dispatcher.dispatch(BILL)
    directory.default = "EPSON LX-310"
    second = dispatcher.dispatch(BILL)
    assert (first.printer_name, second.printer_name) == ("TVS MSP 250", "EPSON LX-310")
    assert directory.default_calls == 2


def test_engine_timeout_then_spool_rejected_surfaces_spool_detail() -> None:
    with tempfile.TemporaryDirectory() as tmp:
        runner = FakeRunner(
            [subprocess.TimeoutExpired("powershell", 10)],
        )
        dispatcher = PrintDispatcher(
            settings=_settings(tmp),
            directory=FakeDirectory(default="TVS MSP 250"),
            sender=FakeSender(error=SpoolRejected("Printer is offline")),
            runner=runner,
            system="windows",
        )
        result = dispatcher.dispatch(BILL)

    assert not result.success
    assert result.error.kind is ErrorKind.SPOOL_REJECTED
    assert [a.route for a in result.attempts] == ["engine", "raw-text"]
    assert isinstance(result.attempts[0].error, EngineTimeout)
    assert result.reason.startswith("Printer is offline")
    assert "engine:" in result.message and "raw-text:" in result.message


def test_engine_nonzero_exit_is_engine_failed() -> None:
    with tempfile.TemporaryDirectory() as tmp:
        runner = FakeRunner([CommandOutput(5, "", "")])
        dispatcher = PrintDispatcher(
            settings=_settings(tmp, strategies=["engine"]),
            directory=FakeDirectory(default="HP"),
            sender=FakeSender(),
            runner=runner,
            system="windows",
        )
        result = dispatcher.dispatch(BILL)
    assert result.error.kind is ErrorKind.ENGINE_FAILED
    assert "exit status 5" in result.reason


def test_unsupported_platform_runs_nothing() -> None:
    raw = RecordingStrategy("raw-text")
    directory = FakeDirectory(default="TVS MSP 250")
    dispatcher = PrintDispatcher(
        directory=directory, sender=FakeSender(), strategies=[raw], system="Darwin"
    )
    result = dispatcher.dispatch(BILL)
    assert result.error.kind is ErrorKind.PLATFORM_UNSUPPORTED
    assert raw.jobs == []
    assert directory.default_calls == 0


def test_empty_chain_fails() -> None:
    dispatcher = PrintDispatcher(
        directory=FakeDirectory(default="HP"),
        sender=FakeSender(),
        strategies=[],
        system="windows",
    )
    result = dispatcher.dispatch(BILL)
    assert result.error.kind is ErrorKind.ENGINE_UNAVAILABLE


def test_most_specific_error_priority() -> None:
    attempts = [
        StrategyAttempt("engine", EngineUnavailable()),
        StrategyAttempt("qt-document", EngineFailed("bad")),
        StrategyAttempt("raw-text", TempFileIO()),
    ]
    assert isinstance(most_specific_error(attempts), EngineFailed)
    attempts.append(StrategyAttempt("raw-text", SpoolRejected("jam")))
    assert most_specific_error(attempts).detail == "jam"


def test_find_virtual_match_is_case_insensitive() -> None:
    patterns = PrintSettings().normalized().virtual_printers
    assert find_virtual_match("Microsoft Print To PDF", patterns) == "pdf"
    assert find_virtual_match("TVS MSP 250", patterns) is None


class _SlowStrategy(RecordingStrategy):
    def __init__(self):
        super().__init__("raw-text")
        self.active = 0
        self.peak = 0
        self._guard = threading.Lock()

    def print_job(self, job, printer_name):
        with self._guard:
            self.active += 1
            self.peak = max(self.peak, self.active)
        time.sleep(0.05)
        with self._guard:
            self.active -= 1
        return super().print_job(job, printer_name)


def test_dispatches_are_serialized() -> None:
    strategy = _SlowStrategy()
    dispatcher = PrintDispatcher(
        directory=FakeDirectory(default="TVS MSP 250"),
        sender=FakeSender(),
        strategies=[strategy],
        system="windows",
    )
    threads = [threading.Thread(target=dispatcher.dispatch, args=(BILL,)) for _ in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    assert len(strategy.jobs) == 4
    assert strategy.peak == 1

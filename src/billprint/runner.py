"""External command execution used by the platform backends."""

from __future__ import annotations

import subprocess
import sys
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Sequence


@dataclass(slots=True)
class CommandOutput:
    """Captured result of one external command."""

    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def succeeded(self) -> bool:
        return self.returncode == 0


class CommandRunner(ABC):
    """
    Narrow process capability.

    Implementations raise FileNotFoundError/OSError when the program cannot
    be started and subprocess.TimeoutExpired when it overruns ``timeout``.
    """

    @abstractmethod
    def run(self, args: Sequence[str], timeout: Optional[float] = None) -> CommandOutput:
        """Run args to completion and capture its output."""


class SubprocessRunner(CommandRunner):
    """CommandRunner backed by subprocess.run."""

    def run(self, args: Sequence[str], timeout: Optional[float] = None) -> CommandOutput:
        kwargs = {}
        if sys.platform == "win32":
            # Keep console windows from flashing over the billing screen.
            kwargs["creationflags"] = subprocess.CREATE_NO_WINDOW
        proc = subprocess.run(
            list(args),
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            timeout=timeout,
            check=False,
            **kwargs,
        )
        return CommandOutput(
            returncode=proc.returncode,
            stdout=proc.stdout or "",
            stderr=proc.stderr or "",
        )

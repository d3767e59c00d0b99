"""PowerShell invocation helpers shared by the Windows backends."""

from __future__ import annotations

import base64
from typing import List, Optional

from ..runner import CommandOutput, CommandRunner

POWERSHELL = "powershell"

# PowerShell treats all of these as single quotes inside a '...' literal.
_SINGLE_QUOTES = ("'", "\u2018", "\u2019", "\u201a", "\u201b")


def quote_literal(value: str) -> str:
    """
    Embed value as a verbatim single-quoted PowerShell string.

    Inside single quotes PowerShell expands nothing (no ``$``, no backtick
    escapes); the only way out is a quote character, so each one is doubled.
    """
    escaped = (value or "").replace("\x00", "")
    for quote in _SINGLE_QUOTES:
        escaped = escaped.replace(quote, quote * 2)
    return f"'{escaped}'"


def encode_script(script: str) -> str:
    """Base64 UTF-16LE form accepted by -EncodedCommand."""
    return base64.b64encode(script.encode("utf-16-le")).decode("ascii")


def decode_script(encoded: str) -> str:
    return base64.b64decode(encoded).decode("utf-16-le")


def build_command(script: str, encoded: bool = False) -> List[str]:
    args = [
        POWERSHELL,
        "-NoProfile",
        "-NonInteractive",
        "-ExecutionPolicy",
        "Bypass",
    ]
    if encoded:
        # Keeps payload text away from command-line quote parsing.
        args.extend(["-EncodedCommand", encode_script(script)])
    else:
        args.extend(["-Command", script])
    return args


def run_script(
    runner: CommandRunner,
    script: str,
    timeout: Optional[float] = None,
    encoded: bool = False,
) -> CommandOutput:
    return runner.run(build_command(script, encoded=encoded), timeout=timeout)

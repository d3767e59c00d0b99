"""Environment-driven settings for the print subsystem."""

from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass, field
from typing import List, Mapping, Optional

from dotenv import load_dotenv

DEFAULT_STRATEGIES = ("engine", "raw")
KNOWN_STRATEGIES = {"engine", "raw", "qt"}

# Substrings (case-insensitive) of drivers that print to a file or a notebook.
DEFAULT_VIRTUAL_PRINTERS = (
    "pdf",
    "xps",
    "onenote",
    "fax",
    "document writer",
    "print to file",
)

# COM automation servers able to load a local HTML file and print it without UI.
DEFAULT_ENGINE_PROGIDS = ("InternetExplorer.Application",)


def _split_list(raw: Optional[str]) -> List[str]:
    if not raw:
        return []
    return [part.strip() for part in raw.replace(";", ",").split(",") if part.strip()]


def _to_float(raw: Optional[str], default: float) -> float:
    try:
        value = float(raw) if raw not in (None, "") else default
    except (TypeError, ValueError):
        return default
    return value if value > 0 else default


@dataclass(slots=True)
class PrintSettings:
    """Print subsystem settings."""

    printer_name: Optional[str] = None  # configured target, overrides OS default
    strategies: List[str] = field(default_factory=lambda: list(DEFAULT_STRATEGIES))
    engine_progids: List[str] = field(default_factory=lambda: list(DEFAULT_ENGINE_PROGIDS))
    engine_timeout: float = 10.0
    spool_timeout: float = 30.0
    query_timeout: float = 6.0
    virtual_printers: List[str] = field(default_factory=lambda: list(DEFAULT_VIRTUAL_PRINTERS))
    temp_dir: Optional[str] = None
    temp_filename: str = "billprint_receipt.html"
    log_level: str = "INFO"

    def normalized(self) -> "PrintSettings":
        """Return a normalized copy used by the dispatcher."""
        strategies = [s.lower() for s in self.strategies if s.lower() in KNOWN_STRATEGIES]
        return PrintSettings(
            printer_name=(self.printer_name or "").strip() or None,
            strategies=list(dict.fromkeys(strategies)) or list(DEFAULT_STRATEGIES),
            engine_progids=[p.strip() for p in self.engine_progids if p.strip()],
            engine_timeout=max(1.0, float(self.engine_timeout)),
            spool_timeout=max(1.0, float(self.spool_timeout)),
            query_timeout=max(1.0, float(self.query_timeout)),
            virtual_printers=[v.strip().lower() for v in self.virtual_printers if v.strip()],
            temp_dir=(self.temp_dir or "").strip() or None,
            temp_filename=(self.temp_filename or "").strip() or "billprint_receipt.html",
            log_level=(self.log_level or "INFO").strip().upper() or "INFO",
        )

    @property
    def temp_path(self) -> str:
        """Fixed per-process temp file reused by every engine job."""
        return os.path.join(self.temp_dir or tempfile.gettempdir(), self.temp_filename)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "PrintSettings":
        """Build settings from ``environ`` (defaults to os.environ after reading .env)."""
        if environ is None:
            load_dotenv()
            environ = os.environ
        settings = cls(
            printer_name=environ.get("BILLPRINT_PRINTER"),
            strategies=_split_list(environ.get("BILLPRINT_STRATEGIES")) or list(DEFAULT_STRATEGIES),
            engine_progids=(
                _split_list(environ.get("BILLPRINT_ENGINE_PROGIDS"))
                or list(DEFAULT_ENGINE_PROGIDS)
            ),
            engine_timeout=_to_float(environ.get("BILLPRINT_ENGINE_TIMEOUT"), 10.0),
            spool_timeout=_to_float(environ.get("BILLPRINT_SPOOL_TIMEOUT"), 30.0),
            query_timeout=_to_float(environ.get("BILLPRINT_QUERY_TIMEOUT"), 6.0),
            virtual_printers=(
                _split_list(environ.get("BILLPRINT_VIRTUAL_PRINTERS"))
                or list(DEFAULT_VIRTUAL_PRINTERS)
            ),
            temp_dir=environ.get("BILLPRINT_TEMP_DIR"),
            temp_filename=environ.get("BILLPRINT_TEMP_FILENAME") or "billprint_receipt.html",
            log_level=environ.get("BILLPRINT_LOG_LEVEL") or "INFO",
        )
        return settings.normalized()

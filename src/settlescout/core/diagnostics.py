"""
Append-only diagnostic files.

Raw payloads that failed to parse and tracebacks of unexpected per-point errors
are kept verbatim for post-mortem, separately from the per-point status text.
"""

from __future__ import annotations

import logging
import traceback
from datetime import datetime
from pathlib import Path

from settlescout.config.settings import Settings
from settlescout.core.env import resolve_project_path

logger = logging.getLogger(__name__)


class DiagnosticsLog:
    """Writes parse failures and unhandled exceptions under a diagnostics directory."""

    def __init__(self, base_dir: Path, *, parse_errors_file: str = "parse_errors.log", errors_file: str = "errors.log"):
        self._base_dir = base_dir
        self._parse_errors_path = base_dir / parse_errors_file
        self._errors_path = base_dir / errors_file

    @classmethod
    def from_settings(cls, settings: Settings) -> "DiagnosticsLog":
        d = settings.diagnostics
        return cls(
            resolve_project_path(d.dir),
            parse_errors_file=d.parse_errors_file,
            errors_file=d.errors_file,
        )

    @property
    def parse_errors_path(self) -> Path:
        return self._parse_errors_path

    @property
    def errors_path(self) -> Path:
        return self._errors_path

    def _append(self, path: Path, text: str) -> None:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with path.open("a", encoding="utf-8") as fh:
                fh.write(text)
        except OSError:
            logger.exception("Could not write diagnostics to %s", path)

    def record_parse_error(self, raw_body: str, error: str | None) -> None:
        stamp = datetime.now().isoformat(timespec="seconds")
        self._append(self._parse_errors_path, f"{stamp}: {error or ''}\n{raw_body}\n\n")

    def record_exception(self, exc: BaseException, *, context: str = "") -> None:
        stamp = datetime.now().isoformat(timespec="seconds")
        trace = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        self._append(self._errors_path, f"{stamp}: {context}\n{trace}\n")

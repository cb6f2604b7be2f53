"""
Logging helper module for terminal-first logging.

Prefixed lines go to stdout. The same lines, with a timestamp, go to a log
file under DOCSCAN_LOG_DIR (default <project>/logs) that is opened on the
first write. Pipeline stages report with Log.kv({"stage": ..., ...}).
"""

import os
from datetime import datetime
from pathlib import Path
from typing import Any, Optional, TextIO

_project_root = Path(__file__).parent.parent

_log_file_path: Optional[Path] = None
_log_file: Optional[TextIO] = None


def _log_dir() -> Path:
    override = os.getenv("DOCSCAN_LOG_DIR")
    if override:
        return Path(override)
    return _project_root / "logs"


def _open_log_file() -> Optional[TextIO]:
    global _log_file, _log_file_path
    if _log_file is not None:
        return _log_file

    log_dir = _log_dir()
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
        _log_file_path = log_dir / f"docscanics_{datetime.now().strftime('%Y%m%d_%H%M%S')}.log"
        _log_file = open(_log_file_path, "a", encoding="utf-8")
    except OSError as err:
        # stdout only from here on
        print(f"[WARN] Unable to open log file in {log_dir}: {err}")
        _log_file_path = None
        _log_file = None
    return _log_file


def _log(message: str):
    print(message)
    log_file = _open_log_file()
    if log_file is not None:
        stamp = datetime.now().strftime("%H:%M:%S")
        log_file.write(f"{stamp} {message}\n" if message else "\n")
        log_file.flush()


def _format_value(value: Any) -> str:
    """None -> '-', lists and tuples comma-joined, everything else str()."""
    if value is None:
        return "-"
    if isinstance(value, (list, tuple)):
        return ",".join(_format_value(v) for v in value) or "-"
    return str(value)


class Log:
    """Stdout plus log-file logging with [INFO]/[WARN]/[ERROR]/[KV] prefixes."""

    @staticmethod
    def section(title: str):
        _log("")
        _log(f"===== {title} =====")

    @staticmethod
    def info(message: str):
        _log(f"[INFO] {message}")

    @staticmethod
    def warn(message: str):
        _log(f"[WARN] {message}")

    @staticmethod
    def error(message: str):
        _log(f"[ERROR] {message}")

    @staticmethod
    def kv(pairs: dict):
        """
        One structured record: '[KV] stage=location | source=address'

        Args:
            pairs: Keys in insertion order; see _format_value for values
        """
        _log("[KV] " + " | ".join(f"{k}={_format_value(v)}" for k, v in pairs.items()))

    @staticmethod
    def get_log_path() -> str:
        """Path of the current log file, or "" when logging to stdout only."""
        _open_log_file()
        return str(_log_file_path) if _log_file_path else ""

    @staticmethod
    def close():
        """Close the log file; the next write opens a fresh one."""
        global _log_file, _log_file_path
        if _log_file is not None:
            _log_file.close()
        _log_file = None
        _log_file_path = None

"""
Logging configuration — central setup for the entrypoint.

Called once at startup by main.py.  Every module that does
``logger = logging.getLogger(__name__)`` inherits this config.

The log file is the run's diagnostic sink: it is truncated at process
start and receives full detail (commands, stderr, errors). The stderr
console handler is only attached in verbose mode, so a quiet run shows
nothing but operator messages.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

# ── Format strings ──────────────────────────────────────────────

# Console (verbose): timestamped, with module context
_FMT_VERBOSE = "%(asctime)s [%(name)s] %(message)s"
_DATEFMT_VERBOSE = "%H:%M:%S"

# File output: always full detail
_FMT_FILE = "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d — %(message)s"
_DATEFMT_FILE = "%Y-%m-%d %H:%M:%S"

# Third-party loggers that are noisy at INFO/DEBUG
_NOISY_LOGGERS = ("urllib3", "charset_normalizer")


def setup_logging(
    log_file: str | Path | None = None,
    *,
    console_level: str | None = None,
    file_level: str = "DEBUG",
    quiet_third_party: bool = True,
) -> Path | None:
    """Configure Python logging for the entire process.

    Args:
        log_file: Path to the run's log file. Truncated on open.
        console_level: Level for a stderr console handler, or None for
            no console logging at all.
        file_level: Level for the log file.
        quiet_third_party: Keep noisy third-party loggers at WARNING.

    Returns:
        The resolved log file path, or None when no file was configured.
    """
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    effective_level = logging.WARNING
    resolved: Path | None = None

    # ── File handler (the run's log sink) ───────────────────────
    if log_file:
        resolved = Path(log_file).expanduser()
        resolved.parent.mkdir(parents=True, exist_ok=True)
        numeric = _parse_level(file_level)
        fh = logging.FileHandler(resolved, mode="w", encoding="utf-8")
        fh.setLevel(numeric)
        fh.setFormatter(logging.Formatter(_FMT_FILE, datefmt=_DATEFMT_FILE))
        root.addHandler(fh)
        effective_level = min(effective_level, numeric)

    # ── Console handler (stderr, verbose only) ──────────────────
    if console_level:
        numeric = _parse_level(console_level)
        console = logging.StreamHandler(sys.stderr)
        console.setLevel(numeric)
        console.setFormatter(logging.Formatter(_FMT_VERBOSE, datefmt=_DATEFMT_VERBOSE))
        console.addFilter(_skip_echoed)
        root.addHandler(console)
        effective_level = min(effective_level, numeric)

    if not root.handlers:
        root.addHandler(logging.NullHandler())

    root.setLevel(effective_level)

    # ── Third-party noise control ───────────────────────────────
    if quiet_third_party:
        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    # Don't propagate exceptions from logging itself
    logging.raiseExceptions = False
    return resolved


def _skip_echoed(record: logging.LogRecord) -> bool:
    """Drop records the output channel already wrote to the terminal."""
    return not getattr(record, "echoed", False)


def _parse_level(level: str | None) -> int:
    """Convert a level name string to its numeric constant."""
    if not level:
        return logging.WARNING
    numeric = getattr(logging, level.upper(), None)
    if not isinstance(numeric, int):
        return logging.WARNING
    return numeric

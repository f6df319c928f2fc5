from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional


class _ThirdPartyNoiseFilter(logging.Filter):
    """
    Keep our own loggers at the configured level, but only let
    third-party libraries (uvicorn access logs, pymongo topology chatter,
    passlib backend probing) through at WARNING+.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        name = record.name
        if name == "backend" or name.startswith(("backend.", "client.")):
            return True
        if name in ("database", "uvicorn.error"):
            return True
        return record.levelno >= logging.WARNING


def setup_logging(
    *,
    level: str | int = logging.INFO,
    log_dir: Optional[str | Path] = None,
) -> None:
    """
    Configure the root logger with a console handler and, when log_dir is
    given, a file handler that receives everything at DEBUG.

    Call this once, at startup.
    """
    root = logging.getLogger()
    root.setLevel(logging.DEBUG)

    # Remove pre-existing handlers so reloads do not duplicate output.
    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    ch = logging.StreamHandler(sys.stderr)
    ch.setLevel(level)
    ch.setFormatter(fmt)
    ch.addFilter(_ThirdPartyNoiseFilter())
    root.addHandler(ch)

    if log_dir:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(str(log_dir / "taskboard.log"), encoding="utf-8")
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(fmt)
        root.addHandler(fh)

    logging.captureWarnings(True)
    logging.getLogger("pymongo").setLevel(logging.WARNING)
    logging.getLogger("passlib").setLevel(logging.ERROR)

# src/mstodo_fetcher/logging_setup.py

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

LOG_FILE_NAME = "mstodo.log"
LOG_FORMAT = "%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_PACKAGE = __name__.partition(".")[0]
_OWNED = "_mstodo_handler"


class _PollerConsoleFilter(logging.Filter):
    """Package records at any level; httpx, httpcore and captured warnings only from WARNING up."""

    def filter(self, record: logging.LogRecord) -> bool:
        if record.name == _PACKAGE or record.name.startswith(_PACKAGE + ".") or record.name == "__main__":
            return True
        return record.levelno >= logging.WARNING


def _owned(handler: logging.Handler) -> logging.Handler:
    setattr(handler, _OWNED, True)
    return handler


def setup_logging(
    *,
    log_dir: str | Path = ".local/mstodo",
    console_level: int = logging.INFO,
    file_level: int | None = logging.DEBUG,
    max_bytes: int = 5 * 1024 * 1024,
    backup_count: int = 3,
) -> Path | None:
    """
    Send logs to stderr (filtered) and to a rotating file under log_dir.

    stdout stays free for the JSON event stream. Calling this again replaces
    the handlers it installed before and leaves any others on the root logger.
    file_level=None skips the file. Returns the log file path, if any.
    """
    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for handler in [h for h in root.handlers if getattr(h, _OWNED, False)]:
        root.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    console = _owned(logging.StreamHandler(sys.stderr))
    console.setLevel(console_level)
    console.setFormatter(formatter)
    console.addFilter(_PollerConsoleFilter())
    root.addHandler(console)

    log_file: Path | None = None
    if file_level is not None:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        log_file = log_dir / LOG_FILE_NAME
        file_handler = _owned(
            RotatingFileHandler(log_file, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8")
        )
        file_handler.setLevel(file_level)
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    logging.captureWarnings(True)
    return log_file

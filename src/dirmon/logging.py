"""Logging helpers for dir-mon."""
from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterator

from dirmon.config import LoggingConfig
from dirmon.errors import LogInitError

DEFAULT_FORMAT = "%(asctime)s %(levelname)s: %(message)s"
FILE_FORMAT = "%(asctime)s %(message)s"
FILE_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"
LOG_NAME_FORMAT = "dir-mon-%Y%m%d-%H%M%S.log"

SINK_NAME = "dirmon"


def configure_logging(config: LoggingConfig) -> None:
    """Configure console logging."""
    logging.basicConfig(level=config.level, format=DEFAULT_FORMAT)


def log_path_for(started_at: datetime, log_dir: Path) -> Path:
    return log_dir / started_at.strftime(LOG_NAME_FORMAT)


@contextmanager
def retention_log(config: LoggingConfig, started_at: datetime) -> Iterator[logging.Logger]:
    """Open the per-invocation log file and yield the sink logger.

    The file handler is attached to the root logger so every module logger
    lands in the file. It is flushed, closed and detached on exit.
    """
    log_dir = Path(config.log_dir)
    log_path = log_path_for(started_at, log_dir)
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(log_path, mode="a", encoding="utf-8")
    except OSError as exc:
        raise LogInitError(f"Cannot create log file in {log_dir}: {exc}") from exc
    handler.setLevel(config.level)
    handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=FILE_DATE_FORMAT))

    root = logging.getLogger()
    root.addHandler(handler)
    sink = logging.getLogger(SINK_NAME)
    sink.setLevel(config.level)
    try:
        sink.info("Log file: %s", log_path)
        yield sink
    finally:
        root.removeHandler(handler)
        handler.flush()
        handler.close()

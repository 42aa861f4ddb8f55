"""Configuration loader and option resolver for dir-mon."""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
import os
from typing import Any, Dict, Optional

import yaml

from dirmon.errors import (
    ConfigurationError,
    ConflictingOptions,
    InvalidArgument,
    InvalidDirectory,
    MissingArgument,
)

DEFAULT_CONFIG_PATH = Path("/etc/dir-mon/config.yaml")
DEFAULT_LOG_DIR = Path("logs")
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_INTERVAL_SECONDS = 600
DEFAULT_SIZE_MB = 2048
DEFAULT_FILE_COUNT = 1
DEFAULT_DURATION_MINUTES = 0

BYTES_PER_MB = 1024 ** 2
BYTES_PER_GB = 1024 ** 3


@dataclass(frozen=True)
class RetentionConfig:
    directory: Path
    size_threshold_bytes: int
    max_retained_count: int
    dry_run: bool
    duration_minutes: int


@dataclass(frozen=True)
class LoggingConfig:
    level: str
    log_dir: Path


@dataclass(frozen=True)
class ScheduleConfig:
    interval_seconds: float


@dataclass(frozen=True)
class AppSettings:
    logging: LoggingConfig
    schedule: ScheduleConfig


@dataclass(frozen=True)
class RawOptions:
    """Option values as typed on the command line, before validation."""

    directory: Optional[str] = None
    size_in_mb: Optional[str] = None
    size_in_gb: Optional[str] = None
    file_count: Optional[str] = None
    dry_run: bool = False
    time: Optional[str] = None


def _section(data: Dict[str, Any], key: str) -> Dict[str, Any]:
    value = data.get(key) or {}
    if not isinstance(value, dict):
        raise ConfigurationError(f"Config section '{key}' must be a mapping")
    return value


def _settings_path(path: Path | None) -> Path | None:
    if path is not None:
        if not path.exists():
            raise ConfigurationError(f"Config file does not exist: {path}")
        return path
    env_path = os.getenv("DIRMON_CONFIG")
    if env_path:
        return _settings_path(Path(env_path))
    for candidate in (Path.cwd() / "config" / "dir-mon.yaml", DEFAULT_CONFIG_PATH):
        if candidate.exists():
            return candidate
    return None


def load_settings(path: Path | None = None) -> AppSettings:
    """Load process settings from YAML, falling back to built-in defaults."""
    config_path = _settings_path(path)
    raw: Any = {}
    if config_path is not None:
        try:
            raw = yaml.safe_load(config_path.read_text()) or {}
        except (OSError, yaml.YAMLError) as exc:
            raise ConfigurationError(f"Cannot read config file {config_path}: {exc}") from exc
    if not isinstance(raw, dict):
        raise ConfigurationError(f"Config file {config_path} must contain a mapping")

    logging_raw = _section(raw, "logging")
    schedule_raw = _section(raw, "schedule")

    try:
        interval = float(schedule_raw.get("interval_seconds", DEFAULT_INTERVAL_SECONDS))
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"schedule.interval_seconds must be a number: {exc}") from exc
    if interval <= 0:
        raise ConfigurationError("schedule.interval_seconds must be greater than 0")

    level = str(logging_raw.get("level", DEFAULT_LOG_LEVEL)).upper()
    if not isinstance(logging.getLevelName(level), int):
        raise ConfigurationError(f"logging.level is not a known log level: {level}")

    return AppSettings(
        logging=LoggingConfig(
            level=level,
            log_dir=Path(logging_raw.get("log_dir", DEFAULT_LOG_DIR)),
        ),
        schedule=ScheduleConfig(interval_seconds=interval),
    )


def _require_directory(value: Optional[str]) -> Path:
    if not value:
        raise MissingArgument("Target directory is required (-d/--directory).")
    directory = Path(value).expanduser()
    if not directory.is_dir():
        raise InvalidDirectory(f"Directory does not exist: {directory}")
    return directory


def _non_negative_int(flag: str, value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    text = str(value).strip()
    if not re.fullmatch(r"\d+", text, re.ASCII):
        raise InvalidArgument(flag, f"expected a non-negative integer, got {value!r}")
    return int(text)


def _size_threshold(size_mb: Optional[int], size_gb: Optional[int]) -> int:
    if size_mb and size_gb:
        raise ConflictingOptions(
            "--size-in-mb and --size-in-gb are mutually exclusive; give only one of them."
        )
    if size_mb is not None and (size_gb is None or size_mb > 0):
        return size_mb * BYTES_PER_MB
    if size_gb is not None:
        return size_gb * BYTES_PER_GB
    return DEFAULT_SIZE_MB * BYTES_PER_MB


def resolve_config(options: RawOptions) -> RetentionConfig:
    """Validate raw option values and build the run configuration.

    Each check fails fast with a ConfigurationError subclass. Only the
    existence of the target directory is checked on disk.
    """
    directory = _require_directory(options.directory)
    size_mb = _non_negative_int("--size-in-mb", options.size_in_mb)
    size_gb = _non_negative_int("--size-in-gb", options.size_in_gb)
    file_count = _non_negative_int("--file-count", options.file_count)
    duration = _non_negative_int("--time", options.time)

    if file_count is None:
        file_count = DEFAULT_FILE_COUNT
    if file_count < 1:
        raise InvalidArgument("--file-count", "File count must be at least 1.")

    return RetentionConfig(
        directory=directory,
        size_threshold_bytes=_size_threshold(size_mb, size_gb),
        max_retained_count=file_count,
        dry_run=bool(options.dry_run),
        duration_minutes=DEFAULT_DURATION_MINUTES if duration is None else duration,
    )

from __future__ import annotations

import dataclasses
from pathlib import Path

import pytest

from dirmon.config import (
    BYTES_PER_GB,
    BYTES_PER_MB,
    DEFAULT_INTERVAL_SECONDS,
    DEFAULT_SIZE_MB,
    RawOptions,
    load_settings,
    resolve_config,
)
from dirmon.errors import (
    ConfigurationError,
    ConflictingOptions,
    InvalidArgument,
    InvalidDirectory,
    MissingArgument,
)


def test_resolve_defaults(tmp_path: Path) -> None:
    config = resolve_config(RawOptions(directory=str(tmp_path)))
    assert config.directory == tmp_path
    assert config.size_threshold_bytes == DEFAULT_SIZE_MB * BYTES_PER_MB
    assert config.max_retained_count == 1
    assert config.dry_run is False
    assert config.duration_minutes == 0


def test_resolve_converts_units(tmp_path: Path) -> None:
    mb = resolve_config(RawOptions(directory=str(tmp_path), size_in_mb="500"))
    gb = resolve_config(RawOptions(directory=str(tmp_path), size_in_gb="1"))
    assert mb.size_threshold_bytes == 500 * 1024 * 1024
    assert gb.size_threshold_bytes == BYTES_PER_GB


def test_zero_mb_defers_to_gb(tmp_path: Path) -> None:
    config = resolve_config(RawOptions(directory=str(tmp_path), size_in_mb="0", size_in_gb="2"))
    assert config.size_threshold_bytes == 2 * BYTES_PER_GB


def test_zero_mb_alone_matches_every_file(tmp_path: Path) -> None:
    config = resolve_config(RawOptions(directory=str(tmp_path), size_in_mb="0"))
    assert config.size_threshold_bytes == 0


def test_both_sizes_conflict(tmp_path: Path) -> None:
    with pytest.raises(ConflictingOptions):
        resolve_config(RawOptions(directory=str(tmp_path), size_in_mb="500", size_in_gb="1"))


def test_missing_directory_argument() -> None:
    with pytest.raises(MissingArgument):
        resolve_config(RawOptions())


def test_directory_must_exist(tmp_path: Path) -> None:
    with pytest.raises(InvalidDirectory):
        resolve_config(RawOptions(directory=str(tmp_path / "nope")))
    a_file = tmp_path / "file.bin"
    a_file.write_text("x")
    with pytest.raises(InvalidDirectory):
        resolve_config(RawOptions(directory=str(a_file)))


@pytest.mark.parametrize(
    "field, value, flag",
    [
        ("size_in_mb", "abc", "--size-in-mb"),
        ("size_in_gb", "-1", "--size-in-gb"),
        ("file_count", "two", "--file-count"),
        ("time", "1.5", "--time"),
        ("file_count", "+5", "--file-count"),
        ("size_in_mb", "1_000", "--size-in-mb"),
        ("time", "\u0663", "--time"),
    ],
)
def test_malformed_numbers_name_the_flag(tmp_path: Path, field: str, value: str, flag: str) -> None:
    options = dataclasses.replace(RawOptions(directory=str(tmp_path)), **{field: value})
    with pytest.raises(InvalidArgument) as excinfo:
        resolve_config(options)
    assert excinfo.value.flag == flag
    assert flag in str(excinfo.value)


def test_file_count_must_be_positive(tmp_path: Path) -> None:
    with pytest.raises(InvalidArgument, match="at least 1"):
        resolve_config(RawOptions(directory=str(tmp_path), file_count="0"))


def test_config_is_immutable(tmp_path: Path) -> None:
    config = resolve_config(RawOptions(directory=str(tmp_path), dry_run=True, time="5"))
    assert config.dry_run is True
    assert config.duration_minutes == 5
    with pytest.raises(dataclasses.FrozenInstanceError):
        config.max_retained_count = 3  # type: ignore[misc]


def test_load_settings_defaults() -> None:
    settings = load_settings()
    assert settings.logging.level == "INFO"
    assert settings.logging.log_dir == Path("logs")
    assert settings.schedule.interval_seconds == DEFAULT_INTERVAL_SECONDS


def test_load_settings_from_yaml(tmp_path: Path) -> None:
    path = tmp_path / "settings.yaml"
    path.write_text(
        "logging:\n  level: debug\n  log_dir: /var/log/dir-mon\nschedule:\n  interval_seconds: 30\n"
    )
    settings = load_settings(path)
    assert settings.logging.level == "DEBUG"
    assert settings.logging.log_dir == Path("/var/log/dir-mon")
    assert settings.schedule.interval_seconds == 30


def test_load_settings_from_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = tmp_path / "env.yaml"
    path.write_text("schedule:\n  interval_seconds: 5\n")
    monkeypatch.setenv("DIRMON_CONFIG", str(path))
    assert load_settings().schedule.interval_seconds == 5


def test_load_settings_from_working_directory(tmp_path: Path) -> None:
    (tmp_path / "config").mkdir()
    (tmp_path / "config" / "dir-mon.yaml").write_text("logging:\n  log_dir: audit\n")
    assert load_settings().logging.log_dir == Path("audit")


@pytest.mark.parametrize(
    "text",
    [
        "logging: [unclosed\n",
        "- just\n- a list\n",
        "logging: 3\n",
        "schedule:\n  interval_seconds: 0\n",
        "schedule:\n  interval_seconds: soon\n",
        "logging:\n  level: verbose\n",
    ],
)
def test_load_settings_rejects_bad_files(tmp_path: Path, text: str) -> None:
    path = tmp_path / "bad.yaml"
    path.write_text(text)
    with pytest.raises(ConfigurationError):
        load_settings(path)


def test_load_settings_missing_explicit_file(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError):
        load_settings(tmp_path / "absent.yaml")

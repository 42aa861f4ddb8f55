"""Large-file scanning and reclaiming for dir-mon."""
from __future__ import annotations

import logging
import os
import stat
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Sequence, Tuple

from dirmon.errors import FatalScanError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FileCandidate:
    path: Path
    modified_at: float
    size: int


@dataclass(frozen=True)
class FileFailure:
    """A stat or delete that failed for a single file."""

    path: Path
    operation: str
    error: str


@dataclass
class CycleReport:
    found: int
    kept: List[FileCandidate]
    excess: List[FileCandidate]
    dry_run: bool = False
    removed: List[Path] = field(default_factory=list)
    failures: List[FileFailure] = field(default_factory=list)

    @property
    def remaining(self) -> int:
        """Qualifying files left on disk after the cycle."""
        if self.dry_run:
            return self.found
        return self.found - len(self.removed)


def scan_candidates(
    directory: Path,
    min_size: int,
    log: logging.Logger = logger,
) -> Tuple[List[FileCandidate], List[FileFailure]]:
    """Find regular files at or above ``min_size`` bytes anywhere under ``directory``.

    Files that vanish while scanning are skipped. Unreadable subdirectories
    are logged and skipped; an unreadable top directory raises FatalScanError.
    """
    top = os.fspath(directory)
    try:
        with os.scandir(top):
            pass
    except OSError as exc:
        raise FatalScanError(f"Cannot read directory {directory}: {exc}") from exc

    def on_error(exc: OSError) -> None:
        if exc.filename == top:
            raise FatalScanError(f"Cannot read directory {directory}: {exc}") from exc
        log.warning("Skipping unreadable directory %s: %s", exc.filename, exc.strerror)

    candidates: List[FileCandidate] = []
    failures: List[FileFailure] = []
    for root, _dirs, names in os.walk(top, onerror=on_error):
        for name in names:
            path = Path(root) / name
            try:
                st = path.lstat()
            except FileNotFoundError:
                continue
            except OSError as exc:
                log.warning("Cannot stat %s: %s", path, exc)
                failures.append(FileFailure(path, "stat", str(exc)))
                continue
            if not stat.S_ISREG(st.st_mode) or st.st_size < min_size:
                continue
            candidates.append(FileCandidate(path=path, modified_at=st.st_mtime, size=st.st_size))
    return candidates, failures


def order_candidates(candidates: Iterable[FileCandidate]) -> List[FileCandidate]:
    """Newest first; equal timestamps fall back to path order."""
    return sorted(candidates, key=lambda c: (-c.modified_at, str(c.path)))


def partition(
    ordered: Sequence[FileCandidate], max_retained: int
) -> Tuple[List[FileCandidate], List[FileCandidate]]:
    if max_retained < 1:
        raise ValueError("max_retained must be at least 1")
    return list(ordered[:max_retained]), list(ordered[max_retained:])


def reclaim(
    excess: Iterable[FileCandidate],
    dry_run: bool,
    log: logging.Logger = logger,
) -> Tuple[List[Path], List[FileFailure]]:
    """Delete the excess files in order, or only report them on a dry run.

    A failed delete is logged and skipped. Returns (removed, failures).
    """
    removed: List[Path] = []
    failures: List[FileFailure] = []
    for candidate in excess:
        if dry_run:
            log.info("Would delete: %s", candidate.path)
            removed.append(candidate.path)
            continue
        try:
            candidate.path.unlink()
        except OSError as exc:
            log.warning("Failed to delete %s: %s", candidate.path, exc)
            failures.append(FileFailure(candidate.path, "delete", str(exc)))
            continue
        log.info("Deleted: %s", candidate.path)
        removed.append(candidate.path)
    return removed, failures

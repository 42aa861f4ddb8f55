"""Retention service for dir-mon: timed scan, decide and act cycles."""
from __future__ import annotations

import enum
import logging
import time
from typing import Any, Callable, Optional

from dirmon.config import DEFAULT_INTERVAL_SECONDS, RetentionConfig
from dirmon.errors import FatalScanError
from dirmon.retention import CycleReport, order_candidates, partition, reclaim, scan_candidates

logger = logging.getLogger(__name__)

STOP_POLL_SECONDS = 0.5


class State(enum.Enum):
    IDLE = "idle"
    SCANNING = "scanning"
    DECIDING = "deciding"
    ACTING = "acting"
    SUMMARIZING = "summarizing"
    SLEEPING = "sleeping"
    TERMINATED = "terminated"


class RetentionService:
    """Keep at most N large files in a directory, rechecking on an interval.

    ``clock`` and ``sleep`` are injectable so the loop can be driven without
    real waiting. The default sleep wakes early when a stop is requested.
    """

    def __init__(
        self,
        config: RetentionConfig,
        sink: Optional[logging.Logger] = None,
        *,
        interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        sleep: Optional[Callable[[float], Any]] = None,
    ) -> None:
        self._config = config
        self._log = sink or logger
        self._interval = interval_seconds
        self._clock = clock
        self._stop_reason: Optional[str] = None
        self._sleep = sleep or self._sleep_until_stopped
        self.state = State.IDLE

    def request_stop(self, reason: str = "stop requested") -> None:
        """Stop once the current cycle has finished.

        Only assigns an attribute, so it is safe to call from a signal handler.
        """
        self._stop_reason = reason

    @property
    def stop_requested(self) -> bool:
        return self._stop_reason is not None

    def _sleep_until_stopped(self, seconds: float) -> None:
        end = time.monotonic() + seconds
        while not self.stop_requested:
            remaining = end - time.monotonic()
            if remaining <= 0:
                return
            time.sleep(min(remaining, STOP_POLL_SECONDS))

    def run_cycle(self) -> CycleReport:
        cfg = self._config
        self.state = State.SCANNING
        self._log.info(
            "Scanning %s for files >= %d bytes", cfg.directory, cfg.size_threshold_bytes
        )
        try:
            candidates, failures = scan_candidates(
                cfg.directory, cfg.size_threshold_bytes, self._log
            )
        except FatalScanError:
            self.state = State.TERMINATED
            raise

        self.state = State.DECIDING
        keep, excess = partition(order_candidates(candidates), cfg.max_retained_count)
        report = CycleReport(
            found=len(candidates),
            kept=keep,
            excess=excess,
            dry_run=cfg.dry_run,
            failures=failures,
        )
        for candidate in keep:
            self._log.info("Keeping: %s", candidate.path)

        if excess:
            self.state = State.ACTING
            removed, delete_failures = reclaim(excess, cfg.dry_run, self._log)
            report.removed.extend(removed)
            report.failures.extend(delete_failures)
        else:
            self._log.info(
                "No action required (%d within limit %d)",
                report.found,
                cfg.max_retained_count,
            )

        self.state = State.SUMMARIZING
        self._summarize(report)
        return report

    def _summarize(self, report: CycleReport) -> None:
        verb = "would remove" if report.dry_run else "removed"
        self._log.info(
            "Cycle summary: found %d, kept %d, %s %d, failed %d",
            report.found,
            len(report.kept),
            verb,
            len(report.removed),
            len(report.failures),
        )
        if report.remaining > self._config.max_retained_count and not report.dry_run:
            self._log.warning(
                "%d qualifying files remain, above the limit of %d, after failed deletions",
                report.remaining,
                self._config.max_retained_count,
            )

    def _deadline_passed(self, deadline: Optional[float]) -> bool:
        return deadline is not None and self._clock() >= deadline

    def run_until(self, deadline: Optional[float]) -> int:
        """Run cycles until ``deadline`` (in clock units) passes or a stop is requested.

        With no deadline this only returns after ``request_stop``. Returns the
        number of completed cycles.
        """
        cycles = 0
        try:
            while not self.stop_requested:
                self.run_cycle()
                cycles += 1
                if self._deadline_passed(deadline):
                    self._log.info("Monitoring duration ended.")
                    break
                if self.stop_requested:
                    break
                self.state = State.SLEEPING
                logger.debug("Sleeping %ss until the next scan", self._interval)
                self._sleep(self._interval)
            if self.stop_requested:
                self._log.info(
                    "Stop requested (%s), exiting after %d cycles", self._stop_reason, cycles
                )
        finally:
            self.state = State.TERMINATED
        return cycles

    def run(self) -> int:
        cfg = self._config
        self._log.info("Monitoring directory: %s", cfg.directory)
        self._log.info("File size threshold: %d bytes", cfg.size_threshold_bytes)
        self._log.info("Maximum files to keep: %d", cfg.max_retained_count)
        if cfg.dry_run:
            self._log.info("Dry run: no files will be deleted")
        deadline = None
        if cfg.duration_minutes > 0:
            deadline = self._clock() + cfg.duration_minutes * 60
            self._log.info("Monitor duration: %d minutes", cfg.duration_minutes)
        return self.run_until(deadline)

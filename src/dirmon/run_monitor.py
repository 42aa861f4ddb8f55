"""Entrypoint for the dir-mon retention monitor."""
from __future__ import annotations

import signal
import sys
from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import Iterator, Optional, Sequence

from dirmon.cli import BANNER, options_from_args, parse_args
from dirmon.config import load_settings, resolve_config
from dirmon.errors import DirMonError
from dirmon.logging import configure_logging, retention_log
from dirmon.service import RetentionService


def _report(exc: Exception) -> None:
    print(f"Error: {exc}", file=sys.stderr)


@contextmanager
def _stop_on_signals(service: RetentionService) -> Iterator[None]:
    """Turn SIGINT/SIGTERM into a stop request honoured between cycles."""

    def handler(signum: int, _frame: object) -> None:
        service.request_stop(signal.Signals(signum).name)

    previous = {signum: signal.signal(signum, handler) for signum in (signal.SIGINT, signal.SIGTERM)}
    try:
        yield
    finally:
        for signum, old in previous.items():
            if old is None:
                continue
            signal.signal(signum, old)


def main(argv: Optional[Sequence[str]] = None) -> int:
    started_at = datetime.now()
    try:
        args = parse_args(argv)
        settings = load_settings(Path(args.config) if args.config else None)
    except DirMonError as exc:
        _report(exc)
        return exc.exit_code

    log_config = settings.logging
    if args.log_dir:
        log_config = replace(log_config, log_dir=Path(args.log_dir))
    configure_logging(log_config)
    if not args.no_banner:
        print(BANNER)

    try:
        with retention_log(log_config, started_at) as sink:
            try:
                config = resolve_config(options_from_args(args))
                service = RetentionService(
                    config, sink, interval_seconds=settings.schedule.interval_seconds
                )
                with _stop_on_signals(service):
                    service.run()
            except DirMonError as exc:
                sink.error("Error: %s", exc)
                _report(exc)
                return exc.exit_code
    except DirMonError as exc:
        _report(exc)
        return exc.exit_code
    return 0


if __name__ == "__main__":
    sys.exit(main())

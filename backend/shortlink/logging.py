"""structlog setup shared by the Temporal worker and ad-hoc admin scripts."""

from __future__ import annotations

import logging
import sys
from typing import IO

import structlog

from shortlink.config import settings


class _TeeWriter:
    """Mirror log lines to stdout and an append-only file.

    A file that cannot be opened or written is dropped; stdout keeps working.
    """

    def __init__(self, file_path: str) -> None:
        self._path = file_path
        self._file: IO[str] | None = None
        try:
            self._file = open(file_path, "a")  # noqa: SIM115
        except OSError as exc:
            # structlog is not configured yet
            print(f"WARNING: cannot open log file {file_path!r}: {exc}", file=sys.stderr)

    def _drop_file(self, op: str) -> None:
        self._file = None
        print(f"WARNING: log file {op} failed for {self._path!r}; stdout only", file=sys.stderr)

    def write(self, data: str) -> None:
        sys.stdout.write(data)
        if self._file is None:
            return
        try:
            self._file.write(data)
            self._file.flush()
        except (OSError, ValueError):
            self._drop_file("write")

    def flush(self) -> None:
        sys.stdout.flush()
        if self._file is None:
            return
        try:
            self._file.flush()
        except (OSError, ValueError):
            self._drop_file("flush")


def _resolve_level(name: str) -> int:
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else logging.INFO


def configure_logging() -> None:
    """Configure structlog: console output in development, JSON lines elsewhere.

    Teardown outcomes are logged with ``exc_info`` on failure, so the JSON
    pipeline renders tracebacks into the ``exception`` field.
    """
    dev = settings.environment == "development"
    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    if dev:
        processors.append(structlog.dev.ConsoleRenderer())
    else:
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]

    logger_factory: structlog.types.WrappedLogger
    if settings.log_file:
        logger_factory = structlog.PrintLoggerFactory(file=_TeeWriter(settings.log_file))  # type: ignore[arg-type]
    else:
        logger_factory = structlog.PrintLoggerFactory()

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(_resolve_level(settings.log_level)),
        context_class=dict,
        logger_factory=logger_factory,
        cache_logger_on_first_use=True,
    )

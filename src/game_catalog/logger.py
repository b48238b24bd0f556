"""
Logging for the importer, built on structlog.

Everything goes to stderr: the CLI prints its JSON results on stdout
and the two must not interleave. An import run binds its run_id once
through ``log_context`` and every component logger picks it up.
"""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, TextIO

import structlog

if TYPE_CHECKING:
    from structlog.types import Processor

from game_catalog.config import LoggingConfig, get_settings

# Chatty at INFO: one line per HTTP request or SQL statement
NOISY_LOGGERS = ("httpx", "httpcore", "sqlalchemy.engine", "aiosqlite")


def _build_processors(config: LoggingConfig, stream: TextIO) -> list["Processor"]:
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]
    if config.include_timestamp:
        processors.insert(0, structlog.processors.TimeStamper(fmt="iso"))

    if config.format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(
            structlog.dev.ConsoleRenderer(
                colors=stream.isatty(),
                exception_formatter=structlog.dev.plain_traceback,
            )
        )
    return processors


def setup_logging(config: LoggingConfig | None = None, stream: TextIO | None = None) -> None:
    """
    Configure structlog and the standard library root logger.

    Args:
        config: Logging section (from settings if None)
        stream: Output stream, stderr if None
    """
    config = config or get_settings().logging
    stream = stream or sys.stderr

    structlog.configure(
        processors=_build_processors(config, stream),
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(config.level)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=stream),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=stream,
        level=getattr(logging, config.level),
    )
    if config.level != "DEBUG":
        for name in NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str | None = None, **initial_context: Any) -> structlog.BoundLogger:
    """
    Return a structlog logger, optionally with bound context.

    Example:
        >>> logger = get_logger(__name__, component="igdb_client")
        >>> logger.info("Query sent", endpoint="games")
    """
    logger = structlog.get_logger(name)
    if initial_context:
        logger = logger.bind(**initial_context)
    return logger


@contextmanager
def log_context(**values: Any) -> Iterator[None]:
    """
    Bind values to every log entry emitted inside the block.

    Example:
        >>> with log_context(run_id="3f2a..."):
        ...     await orchestrator.import_one(record)
    """
    with structlog.contextvars.bound_contextvars(**values):
        yield

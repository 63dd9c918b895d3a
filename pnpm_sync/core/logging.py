"""Structured logging configuration — structlog + stdlib logging.

The CLI owns stdout (its one-line summaries); every log record goes to stderr.
"""

from __future__ import annotations

import logging
import logging.config
import os
import sys

import structlog

LOG_FORMATS = ("console", "json")


def _build_renderer(log_format: str) -> structlog.types.Processor:
    if log_format == "json":
        return structlog.processors.JSONRenderer()
    if log_format != "console":
        raise ValueError(f"unknown log format {log_format!r}, expected one of {LOG_FORMATS}")
    return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())


def setup_logging(verbose: bool = False, log_format: str | None = None) -> None:
    """Configure structlog and stdlib logging for a pnpm-sync process.

    Reads from environment variables:
        PNPM_SYNC_LOG_LEVEL  — log level (default: INFO, DEBUG when *verbose*)
        PNPM_SYNC_LOG_FORMAT — console | json (default: console); *log_format* wins
    """
    log_level = os.environ.get("PNPM_SYNC_LOG_LEVEL", "DEBUG" if verbose else "INFO").upper()
    if log_format is None:
        log_format = os.environ.get("PNPM_SYNC_LOG_FORMAT", "console")
    renderer = _build_renderer(log_format.lower())

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    # --- structlog configure ---
    structlog.configure(
        processors=shared_processors
        + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # --- stdlib logging configure ---
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "structlog": {
                    "()": structlog.stdlib.ProcessorFormatter,
                    "foreign_pre_chain": shared_processors,
                    "processors": [
                        structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                        renderer,
                    ],
                },
            },
            "handlers": {
                "stderr": {
                    "class": "logging.StreamHandler",
                    "stream": "ext://sys.stderr",
                    "formatter": "structlog",
                },
            },
            "root": {
                "handlers": ["stderr"],
                "level": "WARNING",
            },
            "loggers": {
                # Only pnpm-sync's own records follow --verbose.
                "pnpm_sync": {"level": log_level},
                "asyncio": {"level": "WARNING"},
            },
        }
    )

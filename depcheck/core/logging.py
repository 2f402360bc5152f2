"""Logging setup for the depcheck CLI.

Library modules only call ``structlog.get_logger("depcheck.<component>")``;
nothing is configured until an application (the CLI) calls
:func:`setup_logging`. Records go to stderr so a ``--json`` report on stdout
stays machine-readable.
"""

from __future__ import annotations

import logging
import logging.config
import os
import sys

import structlog

LEVEL_ENV = "DEPCHECK_LOG_LEVEL"
FORMAT_ENV = "DEPCHECK_LOG_FORMAT"
DEFAULT_LEVEL = "WARNING"

_FORMATS = ("console", "json")


def _resolve_level(level: str | None) -> str:
    name = (level or os.environ.get(LEVEL_ENV) or DEFAULT_LEVEL).upper()
    # Unknown names fall back instead of failing the run
    if not isinstance(logging.getLevelName(name), int):
        return DEFAULT_LEVEL
    return name


def _resolve_format() -> str:
    fmt = os.environ.get(FORMAT_ENV, "console").lower()
    return fmt if fmt in _FORMATS else "console"


def _renderer(fmt: str) -> structlog.types.Processor:
    if fmt == "json":
        return structlog.processors.JSONRenderer(sort_keys=True)
    return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())


def setup_logging(level: str | None = None) -> None:
    """Route structlog and stdlib logging to stderr.

    *level* wins over ``DEPCHECK_LOG_LEVEL`` (default WARNING);
    ``DEPCHECK_LOG_FORMAT`` picks ``console`` or ``json`` output.
    """
    log_level = _resolve_level(level)
    fmt = _resolve_format()

    pre_chain: list[structlog.types.Processor] = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.format_exc_info,
    ]

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *pre_chain,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "depcheck": {
                    "()": structlog.stdlib.ProcessorFormatter,
                    "foreign_pre_chain": pre_chain,
                    "processors": [
                        structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                        _renderer(fmt),
                    ],
                },
            },
            "handlers": {
                "stderr": {
                    "class": "logging.StreamHandler",
                    "stream": "ext://sys.stderr",
                    "formatter": "depcheck",
                },
            },
            # Third-party libraries stay at WARNING even under -v
            "root": {"handlers": ["stderr"], "level": "WARNING"},
            "loggers": {
                "depcheck": {"level": log_level},
            },
        }
    )

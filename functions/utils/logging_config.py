"""
functions/utils/logging_config.py

Process-wide structlog configuration.

Every module logs through `structlog.get_logger(__name__)` with an
event name first and keyword context after it. This module only decides
how those events are filtered and rendered:

- Level filtering from Settings.log_level
- Context variables merged into every event (request_id is bound per
  request by the middleware in api.py)
- ISO timestamps + JSON lines on stdout
"""

from __future__ import annotations

import logging

import structlog


def configure_logging(log_level: str = "INFO") -> None:
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

"""structlog pipeline for health-check events.

``configure_logging`` wires structlog and stdlib logging from ``HealthSettings``:
JSON lines in production, a console renderer elsewhere. Runner and service
events carry statuses, durations and tag sets, so a processor turns those into
plain JSON-friendly values before rendering.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import MutableMapping
from datetime import timedelta
from enum import Enum
from typing import Any

import structlog

from pulsecheck.config import HealthSettings

# Orchestrators hit probe endpoints every few seconds; their access lines and
# the client libraries used by probes are only interesting on warnings.
QUIET_LOGGERS = ("uvicorn.access", "httpx", "httpcore", "aio_pika", "aiormq")


def render_health_values(
    logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """Render enums, durations and sets as JSON-friendly values."""
    for key, value in event_dict.items():
        if isinstance(value, Enum):
            event_dict[key] = value.value
        elif isinstance(value, timedelta):
            event_dict[key] = round(value.total_seconds() * 1000, 3)
        elif isinstance(value, (set, frozenset)):
            event_dict[key] = sorted(value)
    return event_dict


def configure_logging(settings: HealthSettings) -> None:
    """Configure structlog and the root logger for a health-checked service."""
    service_name = settings.service_name

    def add_service(
        logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
    ) -> MutableMapping[str, Any]:
        event_dict.setdefault("service", service_name)
        event_dict.setdefault("environment", settings.environment)
        return event_dict

    pre_chain: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        add_service,
        render_health_values,
        structlog.processors.format_exc_info,
    ]

    renderer: structlog.types.Processor
    if settings.json_logs:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
            foreign_pre_chain=pre_chain,
        )
    )

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(settings.log_level.upper())
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

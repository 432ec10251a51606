"""
Logging Configuration for the Cafe Inventory Engine

Structured logging through structlog on top of the stdlib root logger.
Every event carries the service name and environment so API, workflow and
ad-hoc runs can be told apart in one log stream.
"""

import logging
import sys
from typing import Optional

import structlog
from structlog.processors import JSONRenderer, TimeStamper
from structlog.stdlib import add_log_level, ProcessorFormatter

from cafe_inventory.config.settings import MonitoringSettings, Settings, get_settings

# Chatty libraries held at WARNING unless the root level is stricter
QUIET_LOGGERS = ("sqlalchemy.engine", "httpx", "prefect")

SERVER_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")


def _service_context(settings: Settings):
    """Processor stamping service and environment on every event"""
    def add_service(logger, method_name, event_dict):
        event_dict.setdefault("service", settings.app_name)
        event_dict.setdefault("env", settings.app_env)
        return event_dict
    return add_service


def configure_logging(
    log_level: Optional[str] = None,
    monitoring: Optional[MonitoringSettings] = None,
    settings: Optional[Settings] = None,
) -> None:
    """
    Configure structured logging for the application.

    Args:
        log_level: Override log level (DEBUG, INFO, WARNING, ERROR)
        monitoring: Logging settings; defaults to those of ``settings``
        settings: Application settings; defaults to the cached instance
    """
    settings = settings or get_settings()
    monitoring = monitoring or settings.monitoring
    level = (log_level or monitoring.log_level).upper()
    numeric_level = getattr(logging, level, logging.INFO)

    shared_processors = [
        structlog.contextvars.merge_contextvars,
        _service_context(settings),
        structlog.stdlib.add_logger_name,
        add_log_level,
        TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    structlog.configure(
        processors=shared_processors + [ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    renderer = JSONRenderer() if monitoring.log_format == "json" else structlog.dev.ConsoleRenderer()
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(numeric_level)
    handler.setFormatter(ProcessorFormatter(processor=renderer, foreign_pre_chain=shared_processors))

    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(numeric_level)

    # uvicorn installs its own handlers; send its records through ours
    for name in SERVER_LOGGERS:
        server_logger = logging.getLogger(name)
        server_logger.handlers = [handler]
        server_logger.propagate = False
        server_logger.setLevel(numeric_level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))

    structlog.get_logger(__name__).info(
        "Logging configured",
        level=level,
        format=monitoring.log_format,
        store_backend=settings.store.backend,
        business_timezone=settings.business.timezone,
    )


def get_logger(name: str):
    """Get a logger instance with the given name."""
    return structlog.get_logger(name)

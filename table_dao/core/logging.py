"""
Logging configuration for the data-access layer.

Everything goes through one structlog-formatted handler on the root logger,
including SQLAlchemy's statement log when SQL echo is on. The engine is
never created with echo=True, since that installs SQLAlchemy's own
unstructured handler next to ours.
"""

import logging
import sys
from typing import Any, Optional

import structlog

from table_dao.config import Settings, get_settings

HANDLER_NAME = "table_dao"
SQL_LOGGER = "sqlalchemy.engine"


def set_sql_echo(enabled: bool) -> None:
    """Log every statement at INFO through the configured handler, or stop doing so."""
    logging.getLogger(SQL_LOGGER).setLevel(logging.INFO if enabled else logging.WARNING)


def _renderer(production: bool) -> Any:
    return structlog.processors.JSONRenderer() if production else structlog.dev.ConsoleRenderer()


def configure_logging(settings: Optional[Settings] = None) -> None:
    """Configure structured logging. Safe to call more than once."""
    settings = settings or get_settings()
    production = settings.ENVIRONMENT == "production"

    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    structlog.configure(
        processors=shared_processors + [
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # structlog events and stdlib records (sqlalchemy.engine) share one renderer
    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            _renderer(production),
        ],
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.set_name(HANDLER_NAME)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    for existing in list(root_logger.handlers):
        if existing.get_name() == HANDLER_NAME:
            root_logger.removeHandler(existing)
    root_logger.addHandler(handler)
    root_logger.setLevel(settings.LOG_LEVEL.upper())

    set_sql_echo(settings.DB_ECHO)

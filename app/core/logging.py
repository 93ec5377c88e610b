"""Настройка структурированного логирования (structlog поверх stdlib logging).

Пример:
    >>> setup_logging(level="INFO", fmt="json")
    >>> logger = get_logger(__name__)
    >>> logger.info("team_created", team_name="backend", members=3)
"""

import logging
import sys

import structlog

from app.core.config import settings


def setup_logging(level: str = settings.LOG_LEVEL, fmt: str = settings.LOG_FORMAT) -> None:
    """Сконфигурировать structlog и корневой stdlib-логгер."""
    log_level = getattr(logging, level)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    root_logger.addHandler(handler)

    if fmt == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            # request_id и прочий контекст запроса
            structlog.contextvars.merge_contextvars,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Получить логгер для модуля."""
    return structlog.get_logger(name)

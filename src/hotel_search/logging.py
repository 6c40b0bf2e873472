"""Structured logging for index loads and searches.

Events are snake_case names with key/value context, e.g.
``reference_data_loaded hotels=601``. Records from both structlog and plain
stdlib loggers go through one handler on stdout, rendered as JSON lines by
default or as plain console lines with ``LOG_FORMAT=console``. Context bound
through structlog.contextvars (a search binds its city and date range) is
merged into every event.
"""

import logging
import logging.config
import sys
from typing import Any, Literal

import structlog
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from structlog.stdlib import BoundLogger
from structlog.typing import Processor


class LoggingSettings(BaseSettings):
    """Logging settings from environment variables."""

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_format: Literal["json", "console"] = Field(default="json", alias="LOG_FORMAT")

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )


def shared_processors() -> list[Processor]:
    """Processors applied to structlog events and to foreign stdlib records alike."""
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True, key="timestamp"),
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]


def _formatter(settings: LoggingSettings) -> dict[str, Any]:
    renderer: Processor
    if settings.log_format == "console":
        renderer = structlog.dev.ConsoleRenderer(colors=False)
    else:
        renderer = structlog.processors.JSONRenderer()
    return {
        "()": structlog.stdlib.ProcessorFormatter,
        "processor": renderer,
        "foreign_pre_chain": shared_processors(),
    }


def configure_logging(settings: LoggingSettings) -> None:
    """Route structlog through stdlib logging with a single stdout handler."""
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *shared_processors(),
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
            "formatters": {"structured": _formatter(settings)},
            "handlers": {
                "stdout": {
                    "class": "logging.StreamHandler",
                    "formatter": "structured",
                    "stream": sys.stdout,
                },
            },
            "root": {"handlers": ["stdout"], "level": settings.log_level.upper()},
        }
    )


# Configure once at module import
configure_logging(LoggingSettings())


def get_logger(name: str) -> BoundLogger:
    """Return a structlog logger named ``name`` (typically ``__name__``)."""
    return structlog.get_logger(name)  # type: ignore[no-any-return]

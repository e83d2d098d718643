"""
structlog configuration.

Every record goes through the stdlib root handler, so uvicorn, SQLAlchemy and
our own loggers share one format: key/value console lines in development and
one JSON object per line in production. Request and booking context bound
with structlog.contextvars is merged into each record.
"""

import logging
import sys

import structlog

from ticketing.core.config import get_settings

# Third-party loggers that drown out booking logs at INFO
QUIET_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "aiosqlite", "websockets")

_configured = False


def _service_fields(app_name: str, environment: str):
    def processor(logger, method_name, event_dict):
        event_dict.setdefault("service", app_name)
        event_dict.setdefault("environment", environment)
        return event_dict

    return processor


def _renderer(environment: str):
    if environment == "production":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=environment == "development")


def setup_logging() -> None:
    """Install the structlog pipeline once per process."""
    global _configured
    if _configured:
        return

    settings = get_settings()
    pre_chain = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        _service_fields(settings.APP_NAME, settings.ENVIRONMENT),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]
    if settings.ENVIRONMENT == "production":
        pre_chain.append(structlog.processors.format_exc_info)

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(settings.ENVIRONMENT),
            ],
        )
    )

    root = logging.getLogger()
    root.addHandler(handler)
    root.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    _configured = True


def get_logger(name: str = __name__) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)

"""structlog setup for the LegalFlow API.

structlog events and records from stdlib loggers (uvicorn, SQLAlchemy, the
Stripe SDK) go through one handler on stdout and come out in the same shape.
Each entry carries the request's ``correlation_id`` when one is set.
"""

import logging
import logging.config

import structlog
from asgi_correlation_id.context import correlation_id

# Libraries that log every request or query at INFO
QUIET_LOGGERS = ("uvicorn.access", "stripe", "sqlalchemy.engine")


def add_correlation_id(logger, method, event_dict):
    cid = correlation_id.get(None)
    if cid:
        event_dict["correlation_id"] = cid
    return event_dict


def _pre_chain() -> list:
    """Processors applied to both structlog events and foreign stdlib records."""
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        add_correlation_id,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]


def _formatter(json_logs: bool) -> dict:
    renderer = structlog.processors.JSONRenderer() if json_logs else structlog.dev.ConsoleRenderer()
    return {
        "()": structlog.stdlib.ProcessorFormatter,
        "processors": [structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        "foreign_pre_chain": _pre_chain(),
    }


def configure_structlog(log_level: str = "INFO", json_logs: bool = True) -> None:
    """Install the stdout handler and the structlog processor chain.

    Args:
        log_level: Root level name, e.g. "INFO"
        json_logs: One JSON object per line when True; coloured console output otherwise
    """
    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {"structured": _formatter(json_logs)},
        "handlers": {
            "stdout": {
                "class": "logging.StreamHandler",
                "formatter": "structured",
                "stream": "ext://sys.stdout",
            },
        },
        "root": {"handlers": ["stdout"], "level": log_level},
        "loggers": {name: {"level": "WARNING"} for name in QUIET_LOGGERS},
    })

    structlog.configure(
        processors=[*_pre_chain(), structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

"""structlog setup for the workflow backend and the sweep script.

stdlib records (uvicorn, redis) go through the same processor chain as
structlog events, so every line carries the request id and, inside item or
workshop requests, the ``item_id`` / ``workshop_id`` being worked on.
"""

import logging
import logging.config

import structlog
from asgi_correlation_id.context import correlation_id

# Chatty libraries stay at WARNING whatever the app level is
QUIET_LOGGERS = ("uvicorn.access", "redis")


def add_correlation_id(logger, method, event_dict):
    """Copy the request id set by CorrelationIdMiddleware into the event."""
    cid = correlation_id.get(None)
    if cid:
        event_dict.setdefault("correlation_id", cid)
    return event_dict


def logger_levels(log_level: str) -> dict[str, dict[str, str]]:
    """Per-logger levels for dictConfig: app loggers follow ``log_level``."""
    levels = {name: {"level": "WARNING"} for name in QUIET_LOGGERS}
    levels["bikeshop"] = {"level": log_level.upper()}
    return levels


def bind_work_context(workshop_id: str | None = None, item_id: str | None = None) -> None:
    """Tag the rest of the current request (or sweep step) with the ids it works on.

    Clears earlier bindings first, so a workshop sweep does not leak the
    previous workshop into the next one.
    """
    structlog.contextvars.clear_contextvars()
    context = {key: value for key, value in (("workshop_id", workshop_id), ("item_id", item_id)) if value}
    if context:
        structlog.contextvars.bind_contextvars(**context)


def configure_structlog(log_level: str = "INFO", json_logs: bool = True) -> None:
    """Route structlog and stdlib logging through one formatter on stdout.

    Call this before importing the rest of the app: loggers created with
    ``cache_logger_on_first_use`` keep the chain they first saw.

    Args:
        log_level: Level for the root and ``bikeshop`` loggers
        json_logs: JSON lines when True, ConsoleRenderer for local work
    """
    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        add_correlation_id,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]

    if json_logs:
        # Tracebacks become a string field instead of multi-line output
        render_chain = [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        render_chain = [structlog.dev.ConsoleRenderer()]

    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "structured": {
                "()": structlog.stdlib.ProcessorFormatter,
                "processors": [structlog.stdlib.ProcessorFormatter.remove_processors_meta, *render_chain],
                "foreign_pre_chain": shared_processors,
            },
        },
        "handlers": {
            "stdout": {
                "class": "logging.StreamHandler",
                "formatter": "structured",
                "stream": "ext://sys.stdout",
            },
        },
        "root": {"handlers": ["stdout"], "level": log_level.upper()},
        "loggers": logger_levels(log_level),
    })

    structlog.configure(
        processors=shared_processors + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

"""
structlog over stdlib logging for the portfolio app.

App events and third-party stdlib records (uvicorn, httpx) share one
ProcessorFormatter on the root handler, so LOG_FORMAT=json yields nothing but
JSON lines. Every line carries the service name; requests also carry
request_id, method and path from the HTTP middleware.
"""
import logging
import sys
from typing import List, Optional

import structlog
from structlog.types import Processor

from settings import Settings

# Below WARNING these repeat what request_logging and database.py already log
CHATTY_LOGGERS = ("uvicorn.access", "httpx", "httpcore")

SHARED_PROCESSORS: List[Processor] = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.TimeStamper(fmt="iso"),
]


def _render_chain(log_format: str) -> List[Processor]:
    if log_format == "json":
        return [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    # ConsoleRenderer prints exc_info itself
    return [structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())]


def setup_logging(settings: Settings) -> None:
    """Route all logging through structlog according to `settings`.

    Safe to call again (tests, reloads): the root handler is replaced, not
    stacked.
    """
    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=SHARED_PROCESSORS,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            *_render_chain(settings.log_format),
        ],
    )
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(settings.log_level)
    for name in CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(max(logging.WARNING, root.level))

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *SHARED_PROCESSORS,
            structlog.processors.StackInfoRenderer(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    structlog.contextvars.bind_contextvars(service=settings.service_name)
    get_logger(__name__).info(
        "logging_initialized",
        log_format=settings.log_format,
        log_level=settings.log_level,
    )


def get_logger(name: Optional[str] = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)

import logging
import sys
from typing import Optional

import structlog

from config.settings import settings

# stdlib loggers that report every request at INFO
_CHATTY_LOGGERS = ("httpx", "httpcore", "botocore", "urllib3")


def configure_logging(level: Optional[str] = None, json_output: Optional[bool] = None) -> None:
    """
    Send structlog events and stdlib records (uvicorn, httpx, langchain)
    through one renderer on stderr.

    JSON lines unless LOG_JSON=false, which switches to console rendering
    for local CLI runs.
    """
    log_level = getattr(logging, (level or settings.log_level).upper(), logging.INFO)
    as_json = settings.log_json if json_output is None else json_output

    shared = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]
    renderer = (
        structlog.processors.JSONRenderer()
        if as_json
        else structlog.dev.ConsoleRenderer(colors=False)
    )

    structlog.configure(
        processors=shared
        + [
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
        )
    )
    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(log_level)

    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))

"""Structured logging for the API, the camera watcher and the services.

Every module logs through ``get_logger(__name__)`` with key/value context
(``face_id``, ``identity_id``, ``distance``...). Records from third-party
libraries that log through the standard library (uvicorn, SQLAlchemy,
InsightFace) pass through the same renderer, so one stream carries both.
"""
import logging
import sys
from typing import List, Optional

import structlog
from structlog.stdlib import ProcessorFormatter

from facewatch.core.config import settings

# Libraries whose INFO output drowns the recognition logs.
QUIET_LOGGERS = {
    "sqlalchemy.engine": logging.WARNING,
    "aiosqlite": logging.WARNING,
    "insightface": logging.WARNING,
    "onnxruntime": logging.WARNING,
    "multipart": logging.INFO,
}


def _renderer(json_logs: bool) -> structlog.types.Processor:
    if json_logs:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())


def setup_logging(level: Optional[str] = None, json_logs: Optional[bool] = None) -> None:
    """Route structlog and standard library logging to stdout.

    Args:
        level: Log level name, defaults to ``settings.LOG_LEVEL``
        json_logs: Render JSON lines instead of console output; defaults to
            JSON outside the development environment
    """
    level = (level or settings.LOG_LEVEL).upper()
    if json_logs is None:
        json_logs = settings.ENVIRONMENT != "development"

    timestamper = structlog.processors.TimeStamper(fmt="iso", utc=True)
    pre_chain: List[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        timestamper,
    ]
    if json_logs:
        pre_chain.append(structlog.processors.format_exc_info)

    structlog.configure(
        processors=pre_chain + [ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[ProcessorFormatter.remove_processors_meta, _renderer(json_logs)],
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(getattr(logging, level, logging.INFO))

    # Request logging is left to the routers.
    logging.getLogger("uvicorn.access").disabled = True
    for name in ("uvicorn", "uvicorn.error"):
        logging.getLogger(name).handlers = []
        logging.getLogger(name).propagate = True
    for name, quiet_level in QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(quiet_level)

    structlog.get_logger(__name__).info(
        "Logging configured",
        environment=settings.ENVIRONMENT,
        level=level,
        json=json_logs,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Logger bound to ``name``, usually the calling module's ``__name__``."""
    return structlog.get_logger(name)

"""structlog setup driven by :class:`~knowledge_ingest.config.settings.Settings`.

``LOG_LEVEL`` is the threshold for our own events and for the stdlib
loggers of boto3, httpx, chromadb and uvicorn.  ``APP_ENV=production``
switches the renderer to one JSON object per line for log shippers; any
other environment gets the coloured console renderer.

Both structlog and stdlib records run through the same processor chain, so
every line carries the request locator bound by the ingestion service.
"""

import logging
import sys

import structlog

from knowledge_ingest.config.settings import Settings
from knowledge_ingest.utils.errors import ConfigurationError

# Third-party loggers that are chatty at INFO (credential lookups, HTTP lines).
_QUIET_LOGGERS = ("botocore", "urllib3", "httpx")


def _resolve_level(name: str) -> int:
    level = logging.getLevelName(name.strip().upper())
    if not isinstance(level, int):
        raise ConfigurationError(
            message=f"LOG_LEVEL {name!r} is not a logging level",
            provider_name="logging",
        )
    return level


def configure_logging(settings: Settings | None = None) -> structlog.BoundLogger:
    """Install the processor chain and renderer chosen by ``settings``.

    ``settings`` defaults to a fresh ``Settings()`` read from the environment.
    Raises :class:`ConfigurationError` for an unknown ``LOG_LEVEL``.
    """
    settings = settings or Settings()
    level = _resolve_level(settings.log_level)
    use_json = settings.app_env.strip().lower() == "production"

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    renderer: structlog.types.Processor = (
        structlog.processors.JSONRenderer() if use_json else structlog.dev.ConsoleRenderer(colors=True)
    )

    structlog.configure(
        processors=[*shared_processors, renderer],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                *shared_processors,
                renderer,
            ],
        )
    )
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(logging.WARNING, level))

    return structlog.get_logger()


def get_logger(name: str) -> structlog.BoundLogger:
    """Return a logger bound to ``name``, configuring from the environment on first use."""
    if not structlog.is_configured():
        configure_logging()

    return structlog.get_logger(logger_name=name)

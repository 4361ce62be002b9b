"""Logging setup module using structlog."""

import logging
import sys

import structlog
from structlog.stdlib import BoundLogger

from slackgate.config.models import LoggingConfig

# Third-party loggers that are too chatty at INFO for a proxy that calls
# the Slack API several times per request.
NOISY_LOGGERS = ("slack_sdk", "aiohttp.access")


def setup_logging(config: LoggingConfig) -> None:
    """Initialize logging configuration.

    Routes both structlog and stdlib records (slack_sdk, aiohttp) through a
    single stdout handler rendered as JSON or console text.

    Args:
        config: Logging configuration specifying level and format.
    """
    log_level = getattr(logging, config.level)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    root_logger.addHandler(handler)

    # Library chatter only shows up when we are debugging ourselves
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))

    shared_processors: list[structlog.typing.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]

    if config.format == "json":
        renderer: structlog.typing.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=shared_processors
        + [
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )
    handler.setFormatter(formatter)


def get_logger(name: str | None = None) -> BoundLogger:
    """Get a logger instance.

    Args:
        name: Logger name, typically the module name (__name__).

    Returns:
        A bound logger instance that can be used for logging.
    """
    return structlog.stdlib.get_logger(name)


def bind_request_context(**values: str) -> None:
    """Bind values (e.g. request_id) to every log line of the current task."""
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(**values)

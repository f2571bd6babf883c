"""structlog logging setup for the armor package and CLI."""

import logging
import sys

import structlog

# Parent of every module logger in the package ("armor.csp", "armor.config.policy", ...)
LOGGER_NAME = "armor"


def setup_logging(log_level: str = "info", json_format: bool = True) -> None:
    """Route armor's structlog events to stderr as JSON or console lines.

    Only the "armor" logger tree is touched; the host application's root
    logger keeps its own handlers.
    """
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    if json_format:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    ))

    # stdout carries CLI output
    armor_logger = logging.getLogger(LOGGER_NAME)
    armor_logger.handlers.clear()
    armor_logger.addHandler(handler)
    armor_logger.propagate = False
    armor_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

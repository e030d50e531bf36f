"""
Structured logging with structlog.

Call configure_logging() once at startup, then:

    import structlog
    log = structlog.get_logger(__name__)
    log.info("proposal_submitted", proposal_id=12)

development -> colored console output, production -> JSON lines.
"""

import logging

import structlog

from portal.core.config import get_settings


def configure_logging(environment: str = None, level: str = None) -> None:
    """Configure structlog processors for the given environment."""
    settings = get_settings()
    environment = environment or settings.environment
    level_name = (level or settings.log_level).upper()

    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if environment == "production":
        final_processor = structlog.processors.JSONRenderer()
    else:
        final_processor = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=shared_processors + [final_processor],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, level_name, logging.INFO)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

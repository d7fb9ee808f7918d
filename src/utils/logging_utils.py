import logging
import sys

import structlog

import config


def setup_logging(log_format=None, log_level=None):
    """
    Configures structlog to output JSON when log_format is "json" and
    colored strings otherwise.
    """
    log_format = log_format or config.LOG_FORMAT
    level = logging.getLevelName((log_level or config.LOG_LEVEL).upper())
    if not isinstance(level, int):
        level = logging.INFO

    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if log_format == "json":
        processors = shared_processors + [
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = shared_processors + [
            structlog.processors.StackInfoRenderer(),
            structlog.dev.ConsoleRenderer(),
        ]

    structlog.configure(
        processors=processors,
        logger_factory=structlog.PrintLoggerFactory(),
        wrapper_class=structlog.make_filtering_bound_logger(level),
        cache_logger_on_first_use=True,
    )

    # sentence-transformers and huggingface log through the stdlib
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)

"""structlog setup for the CLI. Log lines go to stderr; reports own stdout."""

import logging
import sys

import structlog


def setup_logging(log_level: str = "WARNING") -> None:
    level = getattr(logging, log_level.upper(), logging.WARNING)
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="%H:%M:%S"),
            structlog.dev.ConsoleRenderer(colors=False),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=_stderr_logger,
        cache_logger_on_first_use=False,
    )


def _stderr_logger(*args) -> structlog.PrintLogger:
    # sys.stderr is read per logger; CliRunner swaps it
    return structlog.PrintLogger(file=sys.stderr)

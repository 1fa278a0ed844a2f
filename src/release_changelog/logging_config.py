"""Logging for changelog runs.

Every step of a run emits one structlog event, so a CI log shows where a
release section came from and why a pull request is missing from it:

    history_scanned        marker=1.4.0 merges=12
    references_extracted   repo=octo/widgets references=[10, 11, ...]
    fetch_failed           pr_number=7 error="Could not resolve ..."
    pull_requests_fetched  requested=12 failed=1
    release_classified     added=6 changed=2 fixed=3
    changelog_written      path=CHANGELOG.md
    generation_failed      error="..."

The version being released is bound once per run with bind_run_context()
and appears on every event. Output goes to stderr as JSON when
ENVIRONMENT=production and through the console renderer otherwise; stdout
is left to the CLI's confirmation line.
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import structlog


def setup_logging(
    environment: str | None = None,
    log_level: str | None = None,
) -> None:
    """Configure structlog for a CLI run.

    Args:
        environment: "production" selects JSON lines. Reads from the
                     ENVIRONMENT env var if not provided.
        log_level: Minimum level (DEBUG, INFO, WARNING, ERROR).
                   Reads from the LOG_LEVEL env var if not provided.
    """
    env = environment or os.environ.get("ENVIRONMENT", "development")
    level = getattr(logging, (log_level or os.environ.get("LOG_LEVEL", "INFO")).upper())

    renderer: Any = (
        structlog.processors.JSONRenderer()
        if env == "production"
        else structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=_stderr_logger_factory,
        cache_logger_on_first_use=False,
    )

    # httpx reports each GraphQL request through the standard library
    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=level)
    logging.getLogger("httpx").setLevel(max(level, logging.WARNING))


@contextmanager
def bind_run_context(**values: Any) -> Iterator[None]:
    """Attach ``values`` to every event logged inside the block."""
    structlog.contextvars.bind_contextvars(**values)
    try:
        yield
    finally:
        structlog.contextvars.unbind_contextvars(*values)


def get_logger(name: str) -> Any:
    """Get a structured logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        A structlog bound logger
    """
    return structlog.get_logger(name)


def _stderr_logger_factory(*args: Any) -> structlog.PrintLogger:
    # Looked up per logger so a replaced sys.stderr is honoured
    return structlog.PrintLogger(file=sys.stderr)

"""Log setup shared by the lazy-cascade pipeline and CLI.

Pipeline modules log events such as ``closure_computed`` or
``lock_no_matching_entries`` with key/value context through
structlog. ``configure_logging`` decides how those events are shown: as
console lines or as JSON objects, always on stderr. The plan itself is
the only thing ``lazy-cascade plan --json`` prints on stdout.

Pipeline code never configures logging itself; only the CLI does::

    logger = get_logger(__name__)
    logger.debug("package_synthesized", package="cli", instructions=3)
"""

from __future__ import annotations

import logging
import sys

import structlog


def configure_logging(
    *,
    verbose: bool = False,
    quiet: bool = False,
    json_log: bool = False,
) -> None:
    """Route pipeline events to stderr at the level the CLI flags ask for.

    ``quiet`` wins over ``verbose``. Calling this again replaces the
    previous handlers, so repeated CLI invocations in one process do not
    stack output.

    Args:
        verbose: Also show per-package debug events.
        quiet: Drop info events such as the closure summary.
        json_log: One JSON object per event, for CI log collectors.
    """
    if quiet:
        level = logging.WARNING
    elif verbose:
        level = logging.DEBUG
    else:
        level = logging.INFO

    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=level, force=True)

    if json_log:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )
    for handler in logging.root.handlers:
        handler.setFormatter(formatter)


def get_logger(name: str = "lazy_cascade") -> structlog.stdlib.BoundLogger:
    """Logger for a lazy-cascade module, usually called with ``__name__``."""
    return structlog.get_logger(name)

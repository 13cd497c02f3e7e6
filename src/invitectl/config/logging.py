"""structlog configuration for invitectl.

Records go to stderr as colored console lines or, with ``--log-json``, as
JSON lines. Every record emitted inside :func:`guild_scope` carries the
``guild_id`` (and ``member_id`` when known) it was logged for.

Data-inconsistency and mutation-failure warnings (a rank role deleted
from the guild, a vanished announcement channel, a failed role grant)
come from the domain, infrastructure and service loggers and stay
visible even under ``--quiet``.
"""

from __future__ import annotations

import logging
import sys
from contextlib import AbstractContextManager

import structlog

INCONSISTENCY_LOGGERS = ("invitectl.domain", "invitectl.infrastructure", "invitectl.services")


def guild_scope(
    guild_id: str | None, member_id: str | None = None
) -> AbstractContextManager[None]:
    """Bind guild and member ids to every log record emitted in the block."""
    scope = {"guild_id": guild_id, "member_id": member_id}
    return structlog.contextvars.bound_contextvars(
        **{k: v for k, v in scope.items() if v is not None}
    )


def _resolve_level(verbose: bool, quiet: bool) -> int:
    if verbose:
        return logging.DEBUG
    return logging.ERROR if quiet else logging.WARNING


def configure_logging(
    *,
    verbose: bool = False,
    log_json: bool = False,
    quiet: bool = False,
) -> None:
    """Configure structlog processors and route stdlib records through them.

    Args:
        verbose: DEBUG for every invitectl logger. Wins over *quiet*.
        log_json: Use the JSON renderer instead of the console renderer.
        quiet: Only errors, except data-inconsistency warnings.
    """
    level = _resolve_level(verbose, quiet)

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    renderer: structlog.types.Processor
    if log_json:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[*shared_processors, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared_processors,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(logging.WARNING)

    logging.getLogger("invitectl").setLevel(level)
    for name in INCONSISTENCY_LOGGERS:
        logging.getLogger(name).setLevel(min(level, logging.WARNING))
    logging.getLogger("sqlalchemy").setLevel(logging.WARNING)

"""Structured logger shared by the whole backend.

Every module does ``from dockyard.utils.log import log`` and calls
``log.info("event", key=value)``.  The logger is a lazy *structlog* proxy so
processor changes made later (tests use ``structlog.testing.capture_logs``)
still apply to calls made through it.
"""

from __future__ import annotations

import logging

import structlog

# Keep the logger global so every import shares the same base instance.
log = structlog.get_logger("dockyard")

# Attach a default processor chain only if the application has not
# configured structlog already.
if not structlog.is_configured():
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
    )


def configure_logging(level_name: str) -> None:  # noqa: D401 – small helper
    """Apply *level_name* (``"INFO"``, ``"WARNING"`` …) to the stdlib root logger."""

    level = getattr(logging, level_name.upper(), None)
    if not isinstance(level, int):
        level = logging.INFO
    logging.basicConfig(level=level, format="%(message)s", handlers=[logging.StreamHandler()])

    # uvicorn's access log duplicates what the error normalizer already records
    logging.getLogger("uvicorn.access").setLevel(max(level, logging.WARNING))

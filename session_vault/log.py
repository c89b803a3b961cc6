"""Package-wide logger.

Library modules only emit records through :data:`logger`; attaching a
handler is left to the entry point (see :func:`configure_logging`).
"""

from __future__ import annotations

import logging
import sys

logger = logging.getLogger("session_vault")
logger.addHandler(logging.NullHandler())

_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


def configure_logging(level: int = logging.WARNING) -> None:
    """Send package log records to stderr at *level*.

    Safe to call more than once; the stderr handler is only added the
    first time.
    """
    logger.setLevel(level)
    for handler in logger.handlers:
        if getattr(handler, "_session_vault_stderr", False):
            handler.setLevel(level)
            return
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(_FORMAT))
    handler.setLevel(level)
    handler._session_vault_stderr = True  # type: ignore[attr-defined]
    logger.addHandler(handler)

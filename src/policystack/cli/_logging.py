"""stderr logging for CLI invocations.

stdout stays reserved for command output (JSON purity in --json mode).
"""
from __future__ import annotations

import logging
import sys

_HANDLER: logging.Handler | None = None


def _level_from_name(name: str) -> int:
    level = logging.getLevelName(str(name).upper())
    return level if isinstance(level, int) else logging.WARNING


def configure_logging(*, level: str = "WARNING", json_mode: bool = False) -> None:
    """Install (or replace) the policystack stderr handler.

    Idempotent per-process. In JSON mode only errors are emitted so that
    callers parsing stderr payloads are not disturbed by warnings.
    """
    global _HANDLER

    logger = logging.getLogger("policystack")
    if _HANDLER is not None:
        logger.removeHandler(_HANDLER)
        _HANDLER.close()

    effective = logging.ERROR if json_mode else _level_from_name(level)
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(effective)
    handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(effective)
    _HANDLER = handler


def reset_logging_for_tests() -> None:
    """Test-only: remove the installed handler."""
    global _HANDLER
    if _HANDLER is not None:
        logging.getLogger("policystack").removeHandler(_HANDLER)
        _HANDLER.close()
        _HANDLER = None
    logging.getLogger("policystack").setLevel(logging.NOTSET)


__all__ = ["configure_logging", "reset_logging_for_tests"]

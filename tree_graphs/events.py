"""
Event emission and logging helpers.

Every public entry point takes an optional ``emit(kind, payload)`` callback.
Log lines go to the module logger and are mirrored to ``emit`` as
``("log", {"level": ..., "message": ...})`` so a host UI can surface them.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Optional

Emit = Callable[[str, Dict[str, Any]], None]

DEFAULT_EMIT: Emit = lambda *_: None


def log_event(
    logger: logging.Logger,
    level: int,
    msg: str,
    emit: Optional[Emit] = None,
    *args: Any,
) -> None:
    """Log ``msg % args`` and forward it to ``emit`` as a log event."""
    logger.log(level, msg, *args)
    if emit is None:
        return
    try:
        emit("log", {"level": logging.getLevelName(level), "message": msg % args if args else msg})
    except Exception:
        logger.exception("emit callback failed")


def emit_event(emit: Optional[Emit], kind: str, payload: Dict[str, Any]) -> None:
    if emit is None:
        return
    try:
        emit(kind, payload)
    except Exception:
        logging.getLogger(__name__).exception("emit callback failed for %s", kind)

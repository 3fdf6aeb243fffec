from __future__ import annotations
import logging
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[Dict[str, Any]], None]


class Progress:
    """
    Forwards lifecycle events {"phase", "pct", "msg"} to an optional callback.
    """
    def __init__(self, on_progress: Optional[ProgressCallback] = None) -> None:
        self._cb = on_progress

    def emit(self, phase: str, pct: int, msg: str = "") -> None:
        if self._cb is None:
            return
        evt = {"phase": phase, "pct": max(0, min(100, int(pct))), "msg": msg}
        try:
            self._cb(evt)
        except Exception:
            # A broken callback must not break the database
            logger.exception("on_progress callback failed for phase %s", phase)

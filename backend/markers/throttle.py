from __future__ import annotations

import asyncio
import logging
from typing import Callable


logger = logging.getLogger(__name__)


class Throttle:
    """
    Coalesce bursts of calls into at most one `fn()` per `interval_ms`.

    While a call is pending, further `schedule()` calls are absorbed; the callee
    reads the newest state when it finally runs, so the latest request wins.
    Without a running asyncio loop there is nothing to defer to and `fn()` runs
    immediately.
    """

    def __init__(self, fn: Callable[[], object], interval_ms: int = 200):
        self._fn = fn
        self.interval_ms = max(0, int(interval_ms))
        self._handle: asyncio.TimerHandle | None = None

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def schedule(self) -> None:
        if self._handle is not None:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._fn()
            return
        self._handle = loop.call_later(self.interval_ms / 1000.0, self._fire)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def flush(self) -> None:
        """
        Run a pending call now instead of waiting for the timer.
        """
        if self._handle is None:
            return
        self.cancel()
        self._fn()

    def _fire(self) -> None:
        self._handle = None
        try:
            self._fn()
        except Exception:
            # Timer callbacks have no caller to propagate to.
            logger.exception("throttled update failed")

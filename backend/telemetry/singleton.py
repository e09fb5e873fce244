from __future__ import annotations

import logging
import threading

from telemetry.store import TelemetryStore, telemetry_enabled, telemetry_path


logger = logging.getLogger(__name__)

_STORE: TelemetryStore | None = None
_STORE_LOCK = threading.RLock()


def get_store() -> TelemetryStore | None:
    """
    Process-wide store, or None when telemetry is off.
    """
    global _STORE
    if not telemetry_enabled():
        return None
    with _STORE_LOCK:
        path = telemetry_path()
        if _STORE is not None:
            # Reopen if the configured path changed (across tests, for example).
            if _STORE.path.resolve() == path.resolve():
                return _STORE
            _STORE.close()
            _STORE = None

        _STORE = TelemetryStore.open(path)
        logger.info("telemetry store opened at %s", path)
        return _STORE


def reset_store() -> None:
    global _STORE
    with _STORE_LOCK:
        if _STORE is not None:
            _STORE.reset()
            _STORE = None
        else:
            telemetry_path().unlink(missing_ok=True)

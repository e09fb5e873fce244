from .singleton import get_store, reset_store
from .store import TelemetryStore

__all__ = ["TelemetryStore", "get_store", "reset_store"]

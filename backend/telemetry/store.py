from __future__ import annotations

import json
import logging
import queue
import threading
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import duckdb

from geo.aoi import BBox
from telemetry.config import telemetry_enabled, telemetry_path
from telemetry.sql import (
    CREATE_EVENTS_TABLE_SQL,
    INSERT_EVENTS_SQL,
    SLOWEST_SQL_TEMPLATE,
    SUMMARY_SQL_TEMPLATE,
)


logger = logging.getLogger(__name__)

__all__ = ["TelemetryStore", "telemetry_enabled", "telemetry_path"]


def _safe_float(v) -> float | None:
    try:
        if v is None:
            return None
        return float(v)
    except (TypeError, ValueError):
        return None


@dataclass
class TelemetryStore:
    """
    Viewport-update events in a local DuckDB file.

    Writes go through a queue drained by one writer thread, so `record()` never
    blocks the caller.
    """

    path: Path
    conn: duckdb.DuckDBPyConnection
    _lock: threading.RLock = field(default_factory=threading.RLock, repr=False)
    _q: "queue.Queue[dict[str, Any]]" = field(default_factory=queue.Queue, repr=False)
    _stop: threading.Event = field(default_factory=threading.Event, repr=False)
    _worker: threading.Thread | None = field(default=None, repr=False)

    @classmethod
    def open(cls, path: Path) -> "TelemetryStore":
        path.parent.mkdir(parents=True, exist_ok=True)
        store = cls(path=path, conn=duckdb.connect(str(path)))
        store.ensure_schema()
        store.start()
        return store

    def ensure_schema(self) -> None:
        with self._lock:
            self.conn.execute(CREATE_EVENTS_TABLE_SQL)

    def start(self) -> None:
        if self._worker is not None:
            return
        self._stop.clear()
        self._worker = threading.Thread(target=self._run, name="telemetry-writer", daemon=True)
        self._worker.start()

    def stop(self, *, timeout_s: float = 2.0) -> None:
        self._stop.set()
        w = self._worker
        if w is not None and w.is_alive():
            w.join(timeout=timeout_s)
        self._worker = None

    def close(self) -> None:
        self.stop()
        with self._lock:
            self.conn.close()

    def record(
        self,
        *,
        session_id: str,
        provider: str,
        view_zoom: float,
        bounds: BBox,
        stats: dict[str, Any],
    ) -> None:
        # Best-effort, non-blocking: enqueue and return.
        self.start()
        try:
            self._q.put_nowait(
                {
                    "ts_ms": int(time.time() * 1000),
                    "session_id": str(session_id),
                    "provider": str(provider),
                    "view_zoom": float(view_zoom),
                    "min_lng": float(bounds.min_lng),
                    "min_lat": float(bounds.min_lat),
                    "max_lng": float(bounds.max_lng),
                    "max_lat": float(bounds.max_lat),
                    "stats_json": json.dumps(stats, ensure_ascii=False),
                }
            )
        except queue.Full:
            logger.debug("telemetry queue full; dropping event")

    def flush(self, *, timeout_s: float = 2.0) -> None:
        """
        Wait until queued events are written (used by tests).
        """
        if self._worker is None:
            return
        deadline = time.time() + timeout_s
        while time.time() < deadline:
            if self._q.unfinished_tasks == 0:
                break
            time.sleep(0.01)
        # The writer flushes on a time trigger after taking the last event.
        time.sleep(0.55)

    def query(self, sql: str, params: list[Any] | None = None) -> list[tuple]:
        with self._lock:
            if params:
                return self.conn.execute(sql, params).fetchall()
            return self.conn.execute(sql).fetchall()

    def summary(
        self,
        *,
        provider: str | None = None,
        session_id: str | None = None,
        since_ms: int | None = None,
    ) -> list[dict[str, Any]]:
        where = []
        params: list[Any] = []
        if provider:
            where.append("provider = ?")
            params.append(provider)
        if session_id:
            where.append("session_id = ?")
            params.append(session_id)
        if since_ms is not None:
            where.append("ts_ms >= ?")
            params.append(int(since_ms))

        where_sql = f"WHERE {' AND '.join(where)}" if where else ""
        rows = self.query(SUMMARY_SQL_TEMPLATE.format(where_sql=where_sql), params)

        out: list[dict[str, Any]] = []
        for provider_v, n, avg_ms, p50, p95, avg_added, avg_removed, avg_rendered in rows:
            out.append(
                {
                    "provider": provider_v,
                    "n": int(n),
                    "avgTotalMs": _safe_float(avg_ms),
                    "p50TotalMs": _safe_float(p50),
                    "p95TotalMs": _safe_float(p95),
                    "avgAdded": _safe_float(avg_added),
                    "avgRemoved": _safe_float(avg_removed),
                    "avgRendered": _safe_float(avg_rendered),
                }
            )
        return out

    def slowest(self, *, provider: str | None = None, limit: int = 25) -> list[dict[str, Any]]:
        where = ["json_extract(stats_json, '$.timingsMs.total') IS NOT NULL"]
        params: list[Any] = []
        if provider:
            where.append("provider = ?")
            params.append(provider)
        params.append(int(max(1, min(200, limit))))

        rows = self.query(SLOWEST_SQL_TEMPLATE.format(where_sql=" AND ".join(where)), params)
        return [
            {
                "tsMs": int(ts_ms),
                "sessionId": session_v,
                "provider": provider_v,
                "totalMs": _safe_float(total_ms),
                "rendered": int(rendered) if rendered is not None else None,
                "viewZoom": _safe_float(view_zoom),
            }
            for ts_ms, session_v, provider_v, total_ms, rendered, view_zoom in rows
        ]

    def reset(self) -> None:
        # Stop the writer first so it can't write to a closed connection.
        self.stop(timeout_s=2.0)
        with self._lock:
            self.conn.close()
            self.path.unlink(missing_ok=True)

    def _run(self) -> None:
        batch: list[dict[str, Any]] = []
        last_flush = time.time()

        def flush_batch() -> None:
            nonlocal batch
            if not batch:
                return
            try:
                with self._lock:
                    self.conn.executemany(
                        INSERT_EVENTS_SQL,
                        [
                            (
                                e["ts_ms"],
                                e["session_id"],
                                e["provider"],
                                e["view_zoom"],
                                e["min_lng"],
                                e["min_lat"],
                                e["max_lng"],
                                e["max_lat"],
                                e["stats_json"],
                            )
                            for e in batch
                        ],
                    )
                    # Make results visible to readers immediately.
                    self.conn.execute("CHECKPOINT;")
            except duckdb.Error:
                logger.warning("telemetry: dropping %d events", len(batch), exc_info=True)
            batch = []

        while not self._stop.is_set():
            try:
                e = self._q.get(timeout=0.1)
            except queue.Empty:
                e = None

            if e is not None:
                batch.append(e)
                self._q.task_done()

            now = time.time()
            if len(batch) >= 250 or (batch and (now - last_flush) >= 0.5):
                flush_batch()
                last_flush = now

        # Drain remaining
        while True:
            try:
                e = self._q.get_nowait()
            except queue.Empty:
                break
            batch.append(e)
            self._q.task_done()
        flush_batch()

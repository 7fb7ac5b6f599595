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

from telemetry.sql import (
    CREATE_RECOMPUTES_TABLE_SQL,
    INSERT_RECOMPUTE_SQL,
    SUMMARY_SQL_TEMPLATE,
)

logger = logging.getLogger(__name__)

_FLUSH_BATCH = 250
_FLUSH_EVERY_S = 0.5


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
    Recompute events in a local DuckDB file.

    `record()` never blocks the caller: events are queued and written in batches by a
    single writer thread.
    """

    path: Path
    conn: duckdb.DuckDBPyConnection
    _lock: threading.RLock = field(default_factory=threading.RLock, repr=False)
    _q: "queue.Queue[tuple]" = field(default_factory=queue.Queue, repr=False)
    _stop: threading.Event = field(default_factory=threading.Event, repr=False)
    _worker: threading.Thread | None = field(default=None, repr=False)
    _closed: bool = field(default=False, repr=False)

    def ensure_schema(self) -> None:
        with self._lock:
            self.conn.execute(CREATE_RECOMPUTES_TABLE_SQL)

    @property
    def closed(self) -> bool:
        return self._closed

    def start(self) -> None:
        if self._worker is not None or self._closed:
            return
        self._stop.clear()
        self._worker = threading.Thread(
            target=self._run, name="telemetry-writer", daemon=True
        )
        self._worker.start()

    def stop(self, *, timeout_s: float = 2.0) -> None:
        self._stop.set()
        w = self._worker
        if w is not None and w.is_alive():
            w.join(timeout=timeout_s)
        self._worker = None

    def record(
        self,
        *,
        endpoint: str,
        mapset: str,
        region: dict[str, float] | None,
        visible_clusters: int,
        stats: dict[str, Any],
    ) -> None:
        if self._closed:
            logger.debug("Telemetry store %s is closed; event dropped", self.path)
            return
        self.start()
        r = region or {}
        try:
            self._q.put_nowait(
                (
                    int(time.time() * 1000),
                    str(endpoint),
                    str(mapset),
                    _safe_float(r.get("south")),
                    _safe_float(r.get("west")),
                    _safe_float(r.get("north")),
                    _safe_float(r.get("east")),
                    int(visible_clusters),
                    json.dumps(stats, ensure_ascii=False, default=str),
                )
            )
        except queue.Full:
            # drop telemetry on overload
            logger.debug("Telemetry queue full; event dropped")

    def flush(self, *, timeout_s: float = 2.0) -> None:
        """
        Wait until queued events are written (used by tests).
        """
        if self._worker is None:
            return
        deadline = time.time() + timeout_s
        while time.time() < deadline and self._q.unfinished_tasks:
            time.sleep(0.01)

    def query(self, sql: str, params: list[Any] | None = None) -> list[tuple]:
        # DuckDB file locks are per process, so reads go through this connection.
        with self._lock:
            if params:
                return self.conn.execute(sql, params).fetchall()
            return self.conn.execute(sql).fetchall()

    def summary(
        self,
        *,
        mapset: str | None = None,
        endpoint: str | None = None,
        since_ms: int | None = None,
    ) -> list[dict[str, Any]]:
        where = []
        params: list[Any] = []
        if mapset:
            where.append("mapset = ?")
            params.append(mapset)
        if endpoint:
            where.append("endpoint = ?")
            params.append(endpoint)
        if since_ms is not None:
            where.append("ts_ms >= ?")
            params.append(int(since_ms))
        where_sql = f"WHERE {' AND '.join(where)}" if where else ""

        rows = self.query(SUMMARY_SQL_TEMPLATE.format(where_sql=where_sql), params)
        return [
            {
                "mapset": mapset_v,
                "endpoint": endpoint_v,
                "n": int(n),
                "avgVisibleClusters": _safe_float(avg_visible),
                "maxVisibleClusters": int(max_visible) if max_visible is not None else None,
                "avgTotalMs": _safe_float(avg_ms),
                "p95TotalMs": _safe_float(p95),
            }
            for mapset_v, endpoint_v, n, avg_visible, max_visible, avg_ms, p95 in rows
        ]

    def close(self) -> None:
        # Stop the writer first so it can't write to a closed connection.
        self.stop(timeout_s=2.0)
        with self._lock:
            self._closed = True
            self.conn.close()

    def reset(self) -> None:
        self.close()
        self.path.unlink(missing_ok=True)

    def _run(self) -> None:
        batch: list[tuple] = []
        last_flush = time.time()

        def flush_batch() -> None:
            nonlocal batch
            if not batch:
                return
            with self._lock:
                self.conn.executemany(INSERT_RECOMPUTE_SQL, batch)
            for _ in batch:
                self._q.task_done()
            batch = []

        while not self._stop.is_set():
            try:
                batch.append(self._q.get(timeout=0.1))
            except queue.Empty:
                pass

            # Flush on size or time.
            now = time.time()
            if len(batch) >= _FLUSH_BATCH or (batch and (now - last_flush) >= _FLUSH_EVERY_S):
                flush_batch()
                last_flush = now

        # Drain remaining
        while True:
            try:
                batch.append(self._q.get_nowait())
            except queue.Empty:
                break
        flush_batch()

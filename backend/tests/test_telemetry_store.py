from __future__ import annotations

from telemetry.singleton import get_store, reset_store


def test_telemetry_store_writes_rows(tmp_path, monkeypatch):
    db_path = tmp_path / "telemetry.duckdb"
    monkeypatch.setenv("IPMAP_TELEMETRY_PATH", str(db_path))
    monkeypatch.setenv("IPMAP_TELEMETRY", "1")

    store = get_store()
    assert store is not None

    store.record(
        endpoint="/plot",
        mapset="ip_observations",
        region={"south": 40.0, "west": -10.0, "north": 60.0, "east": 30.0},
        visible_clusters=12,
        stats={"timingsMs": {"total": 9.9}},
    )
    store.flush(timeout_s=2.0)

    # Use the existing connection; DuckDB disallows opening the same file with different configs.
    n = int(store.conn.execute("select count(*) from recomputes").fetchone()[0])
    assert n == 1

    (row,) = store.summary(mapset="ip_observations")
    assert row["endpoint"] == "/plot"
    assert row["n"] == 1
    assert row["maxVisibleClusters"] == 12
    assert row["avgTotalMs"] == 9.9


def test_telemetry_disabled_returns_no_store(monkeypatch):
    monkeypatch.setenv("IPMAP_TELEMETRY", "off")
    assert get_store() is None


def test_telemetry_reset_deletes_db(tmp_path, monkeypatch):
    db_path = tmp_path / "telemetry.duckdb"
    monkeypatch.setenv("IPMAP_TELEMETRY_PATH", str(db_path))
    monkeypatch.setenv("IPMAP_TELEMETRY", "1")

    store = get_store()
    assert store is not None
    store.record(endpoint="/ws/view", mapset="m", region=None, visible_clusters=0, stats={})
    assert store.path.resolve() == db_path.resolve()

    reset_store()
    assert not db_path.exists()


def test_reset_store_drops_later_records(tmp_path, monkeypatch):
    monkeypatch.setenv("IPMAP_TELEMETRY_PATH", str(tmp_path / "telemetry.duckdb"))
    monkeypatch.setenv("IPMAP_TELEMETRY", "1")

    held = get_store()
    assert held is not None
    reset_store()

    # A stream that resolved the store earlier keeps a closed handle.
    assert held.closed
    held.record(endpoint="/ws/view", mapset="m", region=None, visible_clusters=0, stats={})
    assert not (tmp_path / "telemetry.duckdb").exists()

    fresh = get_store()
    assert fresh is not None and fresh is not held
    assert not fresh.closed

from __future__ import annotations

import os
from pathlib import Path


def _repo_root() -> Path:
    return Path(__file__).resolve().parents[2]


def telemetry_path() -> Path:
    # Local DuckDB file under the repo unless overridden.
    return Path(
        os.getenv("IPMAP_TELEMETRY_PATH")
        or (_repo_root() / "data" / "telemetry" / "recomputes.duckdb")
    )


def telemetry_enabled() -> bool:
    v = (os.getenv("IPMAP_TELEMETRY") or "1").strip().lower()
    return v not in {"0", "false", "no", "off"}

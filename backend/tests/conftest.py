import sys
from pathlib import Path

import pytest


# Ensure `backend/` is on sys.path so tests can import local modules
# like `geo.*`, `engine.*`, and `main`.
BACKEND_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(BACKEND_ROOT))


@pytest.fixture(autouse=True)
def _isolated_telemetry(tmp_path, monkeypatch):
    # Keep telemetry out of the repo's data/ directory during tests.
    monkeypatch.setenv("IPMAP_TELEMETRY_PATH", str(tmp_path / "telemetry.duckdb"))
    yield

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Iterable

from observations.types import ObservationRecord

logger = logging.getLogger(__name__)


def load_observations_json(path: Path) -> list[ObservationRecord]:
    """
    Input: a JSON array of observation rows:

        {"id": ..., "ipAddress": ...,
         "location": {"geoCoordinates": {"latitude": ..., "longitude": ...},
                      "city": ..., "state": ..., "countryOrRegion": ...}}
    """
    data = json.loads(path.read_text(encoding="utf-8"))
    if isinstance(data, dict):
        # Allow {"markers": [...]} wrappers.
        data = data.get("markers") or data.get("observations") or []
    if not isinstance(data, list):
        raise ValueError(f"Expected a JSON array of observations: {path}")

    records = parse_observations(data)
    logger.info("Loaded %d observations from %s", len(records), path)
    return records


def parse_observations(rows: Iterable[Any]) -> list[ObservationRecord]:
    out: list[ObservationRecord] = []
    missing = 0
    for i, row in enumerate(rows):
        if not isinstance(row, dict):
            continue
        location = row.get("location") or {}
        if not isinstance(location, dict):
            location = {}
        coords = location.get("geoCoordinates") or {}
        if not isinstance(coords, dict):
            coords = {}

        lat = _to_float(coords.get("latitude"))
        lon = _to_float(coords.get("longitude"))
        if lat is None or lon is None:
            missing += 1

        out.append(
            ObservationRecord(
                id=str(row.get("id") if row.get("id") is not None else f"obs-{i}"),
                ip_address=str(row.get("ipAddress") or ""),
                latitude=lat,
                longitude=lon,
                city=_text(location, row, "city"),
                state=_text(location, row, "state"),
                country_or_region=_text(location, row, "countryOrRegion"),
            )
        )

    if missing:
        logger.debug("%d observations have no usable coordinates", missing)
    return out


def _to_float(v: Any) -> float | None:
    if v is None or isinstance(v, bool):
        return None
    try:
        return float(v)
    except (TypeError, ValueError):
        return None


def _text(location: dict[str, Any], row: dict[str, Any], key: str) -> str:
    # Descriptive fields normally live under `location`; accept them at the top level too.
    v = location.get(key)
    if v is None:
        v = row.get(key)
    return str(v) if v is not None else ""

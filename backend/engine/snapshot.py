from __future__ import annotations

import logging
from functools import lru_cache

from engine.types import MapSetSnapshot
from geo.framing import frame_clusters
from geo.viewport import build_cluster_index
from mapsets.registry import get_mapset, resolve_source_path
from observations.aggregate import aggregate_observations, observation_count
from observations.loaders import load_observations_json

logger = logging.getLogger(__name__)


@lru_cache(maxsize=4)
def load_snapshot(mapset_id: str) -> MapSetSnapshot:
    """
    Load a mapset's observations once, aggregate them and build the STRtree index.

    The result is shared by every view of the mapset for the process lifetime.
    """
    entry = get_mapset(mapset_id)
    cfg = entry.config
    path = resolve_source_path(cfg.source.path, base_dir=entry.path.parent)
    records = load_observations_json(path)
    clusters = aggregate_observations(records)
    snapshot = MapSetSnapshot(
        config=cfg,
        records_total=len(records),
        observations=observation_count(clusters),
        index=build_cluster_index(clusters),
        frame=frame_clusters(clusters),
    )
    logger.info(
        "Mapset %s: %d observations in %d clusters (%d rows skipped)",
        cfg.id,
        snapshot.observations,
        len(clusters),
        snapshot.records_total - snapshot.observations,
    )
    return snapshot


def clear_snapshot_cache() -> None:
    load_snapshot.cache_clear()

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Iterable

import yaml

from mapsets.types import MapSetConfig

logger = logging.getLogger(__name__)

_FALLBACK_MAPSET_ID = "ip_observations"


def _repo_root() -> Path:
    # .../backend/mapsets/registry.py -> repo root is 2 levels up
    return Path(__file__).resolve().parents[2]


def mapsets_root() -> Path:
    return Path(os.getenv("IPMAP_MAPSETS_DIR") or (_repo_root() / "mapsets"))


@dataclass(frozen=True)
class MapSetEntry:
    config: MapSetConfig
    # Absolute path to mapset.yaml on disk. Relative source paths are tried against this
    # file's directory first, then against the repo root.
    path: Path


def _iter_mapset_yaml_files() -> Iterable[Path]:
    root = mapsets_root()
    if not root.exists():
        return []
    # Convention: mapsets/*/mapset.yaml
    return root.glob("*/mapset.yaml")


def _load_yaml(path: Path) -> dict:
    data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid mapset yaml root: {path}")
    return data


@lru_cache(maxsize=1)
def get_registry() -> dict[str, MapSetEntry]:
    out: dict[str, MapSetEntry] = {}
    for p in sorted(_iter_mapset_yaml_files(), key=lambda x: str(x)):
        cfg = MapSetConfig.model_validate(_load_yaml(p))
        if cfg.id in out:
            raise ValueError(f"Duplicate mapset id {cfg.id!r}: {p}")
        out[cfg.id] = MapSetEntry(config=cfg, path=p)
    logger.debug("Discovered %d mapsets under %s", len(out), mapsets_root())
    return out


def default_mapset_id() -> str:
    reg = get_registry()
    preferred = (os.getenv("IPMAP_MAPSET") or "").strip() or _FALLBACK_MAPSET_ID
    if preferred in reg:
        return preferred
    # Fall back to stable ordering.
    return next(iter(reg.keys()), preferred)


def list_mapsets() -> list[MapSetConfig]:
    return [e.config for e in get_registry().values() if e.config.enabled]


def get_mapset(mapset_id: str | None) -> MapSetEntry:
    reg = get_registry()
    if not reg:
        raise RuntimeError(f"No mapsets discovered under `{mapsets_root()}/*/mapset.yaml`")
    mid = (mapset_id or "").strip() or default_mapset_id()
    if mid not in reg:
        # Unknown ids fall back to the default mapset.
        mid = default_mapset_id()
    return reg[mid]


def resolve_source_path(path: str, *, base_dir: Path | None = None) -> Path:
    p = Path(path)
    if p.is_absolute() and p.exists():
        return p
    if base_dir is not None and (base_dir / path).exists():
        return base_dir / path
    # Allow both "data/..." and "/data/..." inputs (normalize to repo-relative).
    return _repo_root() / path.lstrip("/")


def clear_registry_cache() -> None:
    """
    Clear the in-memory mapset registry cache.

    YAML changes (or a different IPMAP_MAPSETS_DIR) are otherwise not picked up
    until the process restarts.
    """
    get_registry.cache_clear()

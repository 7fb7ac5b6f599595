from __future__ import annotations

import math
from typing import Iterable

from observations.types import LocationCluster, Member, ObservationRecord


def has_coordinates(record: ObservationRecord) -> bool:
    # Missing and zero coordinates are both treated as "no location".
    lat, lon = record.latitude, record.longitude
    if not lat or not lon:
        return False
    return math.isfinite(lat) and math.isfinite(lon)


def aggregate_observations(
    records: Iterable[ObservationRecord],
) -> list[LocationCluster]:
    """
    Collapse observations into one cluster per exact (latitude, longitude).

    Output is sorted by count ascending. Array order is the stacking order on the map,
    so the biggest markers are drawn last (on top) and small ones stay clickable.
    """
    first_seen: dict[tuple[float, float], ObservationRecord] = {}
    members: dict[tuple[float, float], list[Member]] = {}
    for r in records:
        if not has_coordinates(r):
            continue
        key = (float(r.latitude), float(r.longitude))  # type: ignore[arg-type]
        if key not in first_seen:
            first_seen[key] = r
            members[key] = []
        members[key].append(Member(id=r.id, ip_address=r.ip_address))

    out: list[LocationCluster] = []
    for key, head in first_seen.items():
        out.append(
            LocationCluster(
                latitude=key[0],
                longitude=key[1],
                city=head.city,
                state=head.state,
                country_or_region=head.country_or_region,
                members=tuple(members[key]),
            )
        )

    # list.sort is stable: equal counts keep first-seen order.
    out.sort(key=lambda c: c.count)
    return out


def observation_count(clusters: Iterable[LocationCluster]) -> int:
    return sum(c.count for c in clusters)

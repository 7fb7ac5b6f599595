from __future__ import annotations

CREATE_RECOMPUTES_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS recomputes (
  ts_ms BIGINT,
  endpoint TEXT,
  mapset TEXT,
  region_south DOUBLE,
  region_west DOUBLE,
  region_north DOUBLE,
  region_east DOUBLE,
  visible_clusters BIGINT,
  stats_json TEXT
);
"""

SUMMARY_SQL_TEMPLATE = """
SELECT
  mapset,
  endpoint,
  COUNT(*) AS n,
  AVG(visible_clusters) AS avg_visible,
  MAX(visible_clusters) AS max_visible,
  AVG(try_cast(json_extract(stats_json, '$.timingsMs.total') AS DOUBLE)) AS avg_total_ms,
  quantile_cont(try_cast(json_extract(stats_json, '$.timingsMs.total') AS DOUBLE), 0.95) AS p95_total_ms
FROM recomputes
{where_sql}
GROUP BY mapset, endpoint
ORDER BY mapset, endpoint
"""

INSERT_RECOMPUTE_SQL = """
INSERT INTO recomputes
  (ts_ms, endpoint, mapset, region_south, region_west, region_north, region_east, visible_clusters, stats_json)
VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
"""

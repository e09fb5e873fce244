from __future__ import annotations

CREATE_EVENTS_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS viewport_events (
  ts_ms BIGINT,
  session_id TEXT,
  provider TEXT,
  view_zoom DOUBLE,
  min_lng DOUBLE,
  min_lat DOUBLE,
  max_lng DOUBLE,
  max_lat DOUBLE,
  stats_json TEXT
);
"""

SUMMARY_SQL_TEMPLATE = """
SELECT
  provider,
  COUNT(*) AS n,
  AVG(try_cast(json_extract(stats_json, '$.timingsMs.total') AS DOUBLE)) AS avg_total_ms,
  quantile_cont(try_cast(json_extract(stats_json, '$.timingsMs.total') AS DOUBLE), 0.50) AS p50_total_ms,
  quantile_cont(try_cast(json_extract(stats_json, '$.timingsMs.total') AS DOUBLE), 0.95) AS p95_total_ms,
  AVG(try_cast(json_extract(stats_json, '$.added') AS DOUBLE)) AS avg_added,
  AVG(try_cast(json_extract(stats_json, '$.removed') AS DOUBLE)) AS avg_removed,
  AVG(try_cast(json_extract(stats_json, '$.rendered') AS DOUBLE)) AS avg_rendered
FROM viewport_events
{where_sql}
GROUP BY provider
ORDER BY provider
"""

SLOWEST_SQL_TEMPLATE = """
SELECT
  ts_ms,
  session_id,
  provider,
  try_cast(json_extract(stats_json, '$.timingsMs.total') AS DOUBLE) AS total_ms,
  try_cast(json_extract(stats_json, '$.rendered') AS BIGINT) AS rendered,
  view_zoom
FROM viewport_events
WHERE {where_sql}
ORDER BY total_ms DESC
LIMIT ?
"""

INSERT_EVENTS_SQL = """
INSERT INTO viewport_events
  (ts_ms, session_id, provider, view_zoom, min_lng, min_lat, max_lng, max_lat, stats_json)
VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
"""

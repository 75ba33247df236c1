"""
SQL Query Module for the Brand Snapshot backend.

Provides parameterized SQL for:
- Fetching the monthly_metrics and behavioral_coaching record sets
- Inserting computed snapshots into metric_snapshots

Example usage:
    from brand_snapshot.sql import get_monthly_metrics_query

    rows = await conn.fetch(get_monthly_metrics_query(), "UHC", 2025)
"""

from brand_snapshot.sql.snapshot_queries import (
    get_monthly_metrics_query,
    get_behavioral_coaching_query,
    get_snapshot_insert_query,
    SNAPSHOT_COLUMNS,
)


__all__ = [
    'get_monthly_metrics_query',
    'get_behavioral_coaching_query',
    'get_snapshot_insert_query',
    'SNAPSHOT_COLUMNS',
]

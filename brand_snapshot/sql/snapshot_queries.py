"""
Parameterized SQL queries for snapshot record fetching and storage.

Source tables:
    - monthly_metrics: one row per client/program/metric/month with actual
      and goal values
    - behavioral_coaching: one row per client/program/behavior/sub-behavior/
      month with coaching_count and effectiveness_pct
    - metric_snapshots: insert-only store of computed snapshots

The fetch queries return the unfiltered (amplifai_org, year) superset; the
snapshot engine performs all remaining filtering (clients, metric, months)
because upstream values are inconsistent and need tolerant matching. The
organization is compared trimmed and case-insensitively here as well, and
SELECT * is used because the optional free-text `metric` column is not
present in every loader's schema.

Queries use asyncpg positional parameters ($1, $2, ...).
"""

from typing import List


# Columns inserted into metric_snapshots, in parameter order
SNAPSHOT_COLUMNS: List[str] = [
    "clients",
    "amplifai_org",
    "amplifai_metric",
    "comparison_type",
    "current_period_label",
    "previous_period_label",
    "year",
    "current_value",
    "previous_value",
    "change_value",
    "percent_change",
    "current_programs_count",
    "current_coaching_sessions",
    "previous_coaching_sessions",
    "coaching_volume_change",
    "coaching_volume_change_pct",
    "current_coaching_effectiveness",
    "previous_coaching_effectiveness",
    "coaching_effectiveness_change",
    "current_top_behaviors",
    "previous_top_behaviors",
    "ai_summary",
    "created_by",
]

# JSONB columns need an explicit cast from the serialized text parameter
_JSONB_COLUMNS = {"current_top_behaviors", "previous_top_behaviors"}


def get_monthly_metrics_query() -> str:
    """
    Fetch all monthly_metrics rows for an organization and year.

    Parameters:
        $1: amplifai_org
        $2: year
    """
    return """
        SELECT *
        FROM monthly_metrics
        WHERE LOWER(TRIM(amplifai_org)) = LOWER(TRIM($1))
          AND year = $2
    """


def get_behavioral_coaching_query() -> str:
    """
    Fetch all behavioral_coaching rows for an organization and year.

    Parameters:
        $1: amplifai_org
        $2: year
    """
    return """
        SELECT *
        FROM behavioral_coaching
        WHERE LOWER(TRIM(amplifai_org)) = LOWER(TRIM($1))
          AND year = $2
    """


def get_snapshot_insert_query() -> str:
    """
    Insert one metric_snapshots row and return its id.

    Parameters follow SNAPSHOT_COLUMNS order.
    """
    placeholders = [
        f"${idx}::jsonb" if column in _JSONB_COLUMNS else f"${idx}"
        for idx, column in enumerate(SNAPSHOT_COLUMNS, start=1)
    ]
    return f"""
        INSERT INTO metric_snapshots (
            {', '.join(SNAPSHOT_COLUMNS)}
        ) VALUES (
            {', '.join(placeholders)}
        )
        RETURNING id
    """

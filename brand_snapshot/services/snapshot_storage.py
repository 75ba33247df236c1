"""
Insert-only persistence of computed snapshots.

Each computed Snapshot is stored as one metric_snapshots row. Rows are never
updated; recomputing a comparison inserts a new row, which keeps the history
of what was shown to users.

Organization and metric are stored in their standardized form so stored
snapshots group cleanly even when requests used upstream spellings
('UNITED HEALTHCARE', 'Chat NPS').

Storage is best effort: persist_snapshot logs and returns None on failure so
a storage outage never fails the snapshot request itself.
"""

import json
import logging
from typing import Any, Dict, List, Optional, Union

from brand_snapshot.core.database import get_db_pool
from brand_snapshot.models.schemas import ComparisonRequest, Snapshot
from brand_snapshot.services.metric_aggregation import round_half_up
from brand_snapshot.sql.snapshot_queries import SNAPSHOT_COLUMNS, get_snapshot_insert_query


logger = logging.getLogger(__name__)


# Standardized metric -> upstream spellings (matched as upper-case substrings)
METRIC_SYNONYMS: Dict[str, List[str]] = {
    "NPS": ["NPS", "CHAT NPS", "IB NPS", "NPS RATING", "UES-NPS COMPOSITE SCORE"],
    "AHT": ["AHT", "AVERAGE HANDLE TIME", "AVE HANDLE TIME"],
    "QA": ["QA", "QUALITY", "QA SCORE", "QUALITY SCORE"],
    "CSAT": ["CSAT", "C-SAT", "CSAT%"],
    "FCR": ["FCR", "FIRST CALL RESOLUTION", "FCR36"],
    "TRANSFER_RATE": ["TRANSFER RATE", "TRANSFER%", "TRANSFERS"],
    "ATTENDANCE": ["ATTENDANCE", "ATTENDANCE %", "RELIABILITY"],
    "RELEASE_RATE": ["RELEASE RATE", "RELEASE %"],
}

DEFAULT_CREATED_BY: str = "System"


# =============================================================================
# Standardization
# =============================================================================


def standardize_organization(organization: Optional[str]) -> Optional[str]:
    """
    Map organization spellings to the AmplifAI organization code.

    >>> standardize_organization("UNITED HEALTHCARE")
    'UHC'
    >>> standardize_organization("Acme")
    'Acme'
    """
    if organization and "UNITED" in organization.upper() and "HEALTH" in organization.upper():
        return "UHC"
    return organization


def standardize_metric(metric: Optional[str]) -> Optional[str]:
    """
    Map a metric spelling to its standardized name via METRIC_SYNONYMS.

    The first standard whose synonym appears in the upper-cased metric wins;
    unknown metrics are returned unchanged.

    >>> standardize_metric("Chat NPS")
    'NPS'
    >>> standardize_metric("Average Handle Time")
    'AHT'
    """
    if not metric:
        return metric
    upper = metric.upper()
    for standard, variations in METRIC_SYNONYMS.items():
        if any(variation in upper for variation in variations):
            return standard
    return metric


# =============================================================================
# Record Building
# =============================================================================


def build_snapshot_record(
    snapshot: Snapshot,
    request: ComparisonRequest,
    ai_summary: Optional[str] = None,
    created_by: str = DEFAULT_CREATED_BY,
) -> Dict[str, Any]:
    """
    Map a Snapshot to a metric_snapshots row.

    Effectiveness values are stored as percentages (85.0 for a 0.85 mean);
    top behaviors are serialized to JSON for the JSONB columns.

    Returns:
        Dict keyed by SNAPSHOT_COLUMNS.
    """
    metadata = snapshot.snapshot_metadata
    comparison = metadata.comparison
    activity = snapshot.coaching_activity

    def as_percent(value: Optional[float]) -> Optional[float]:
        return round_half_up(value * 100, 2) if value is not None else None

    def behaviors_json(period) -> str:
        return json.dumps([behavior.model_dump(mode="json") for behavior in period.top_behaviors])

    return {
        "clients": list(request.clients),
        "amplifai_org": standardize_organization(request.organization),
        "amplifai_metric": standardize_metric(request.metric_name),
        "comparison_type": request.comparison_type.value,
        "current_period_label": comparison.current_period,
        "previous_period_label": comparison.previous_period,
        "year": request.year,
        "current_value": comparison.current_value,
        "previous_value": comparison.previous_value,
        "change_value": comparison.change,
        "percent_change": comparison.percent_change,
        "current_programs_count": metadata.programs_count,
        "current_coaching_sessions": activity.current.total_coaching_sessions,
        "previous_coaching_sessions": activity.previous.total_coaching_sessions,
        "coaching_volume_change": activity.change.coaching_volume_change,
        "coaching_volume_change_pct": activity.change.coaching_volume_change_pct,
        "current_coaching_effectiveness": as_percent(activity.current.coaching_effectiveness),
        "previous_coaching_effectiveness": as_percent(activity.previous.coaching_effectiveness),
        "coaching_effectiveness_change": activity.change.effectiveness_change_points,
        "current_top_behaviors": behaviors_json(activity.current),
        "previous_top_behaviors": behaviors_json(activity.previous),
        "ai_summary": ai_summary,
        "created_by": created_by,
    }


# =============================================================================
# Persistence
# =============================================================================


async def persist_snapshot(
    snapshot: Snapshot,
    request: ComparisonRequest,
    ai_summary: Optional[str] = None,
) -> Optional[Union[int, str]]:
    """
    Insert a snapshot into metric_snapshots.

    Returns:
        The new row id, or None if the insert failed (the failure is logged).
    """
    record = build_snapshot_record(snapshot, request, ai_summary=ai_summary)
    values = [record[column] for column in SNAPSHOT_COLUMNS]

    try:
        pool = await get_db_pool()
        async with pool.acquire() as conn:
            snapshot_id = await conn.fetchval(get_snapshot_insert_query(), *values)
    except Exception as e:
        logger.error(f"Failed to save snapshot for {record['amplifai_org']}/{record['amplifai_metric']}: {e}", exc_info=True)
        return None

    logger.info(f"Snapshot saved: id={snapshot_id}")
    return snapshot_id

"""
FastAPI router for the Brand Snapshot endpoint.

Key Endpoints:
- POST /snapshot: compute a month-over-month or quarter-over-quarter
  snapshot for a metric and its offset coaching activity

Request flow:
    1. Validate the body (pydantic) and resolve the period selectors;
       unresolvable selectors return 400 before any database access
    2. Fetch the monthly_metrics and behavioral_coaching record sets for the
       organization/year concurrently
    3. Run the snapshot engine
    4. Store the snapshot in metric_snapshots (best effort)
    5. Return the snapshot, its stored id and, on request, match diagnostics
"""

import logging

from fastapi import APIRouter, HTTPException

from brand_snapshot.core.dependencies import SettingsDep
from brand_snapshot.models.enums import ComparisonType
from brand_snapshot.models.schemas import ComparisonRequest, SnapshotRequest, SnapshotResponse
from brand_snapshot.services.periods import InvalidComparisonRequestError, resolve_periods
from brand_snapshot.services.records import RecordFetchError, fetch_record_sets
from brand_snapshot.services.snapshot import compute_snapshot_with_diagnostics
from brand_snapshot.services.snapshot_storage import persist_snapshot


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/snapshot")


def build_comparison_request(body: SnapshotRequest) -> ComparisonRequest:
    """
    Translate the API body into the engine's ComparisonRequest.

    Picks the month or quarter selectors according to comparison_type and
    resolves them once so bad selectors fail before any I/O.

    Raises:
        InvalidComparisonRequestError: If a selector for the requested mode
            is missing or unknown.
    """
    if body.comparison_type == ComparisonType.QUARTER:
        current, previous = body.current_quarter, body.previous_quarter
        unit = "quarter"
    else:
        current, previous = body.current_month, body.previous_month
        unit = "month"

    if not current or not previous:
        raise InvalidComparisonRequestError(
            f"current_{unit} and previous_{unit} are required for {unit} comparisons"
        )

    request = ComparisonRequest(
        clients=body.clients,
        organization=body.organization,
        metric_name=body.metric_name,
        year=body.year,
        comparison_type=body.comparison_type,
        current_selector=current,
        previous_selector=previous,
    )
    resolve_periods(request)
    return request


@router.post("", response_model=SnapshotResponse)
async def create_snapshot(body: SnapshotRequest, settings: SettingsDep) -> SnapshotResponse:
    """
    Compute, store and return a snapshot comparison.

    Raises:
        HTTPException 400: If the period selectors cannot be resolved.
        HTTPException 500: If a source record set cannot be fetched.

    Example Request:
        POST /snapshot
        {
            "clients": ["Alorica"],
            "organization": "UHC",
            "metric_name": "NPS",
            "year": 2025,
            "comparison_type": "quarter",
            "current_quarter": "Q3",
            "previous_quarter": "Q2"
        }
    """
    try:
        request = build_comparison_request(body)
    except InvalidComparisonRequestError as e:
        logger.warning(f"POST /snapshot rejected: {e}")
        raise HTTPException(status_code=400, detail=str(e))

    logger.info(
        f"Processing snapshot request: clients={request.clients}, org={request.organization}, "
        f"metric={request.metric_name}, year={request.year}, type={request.comparison_type.value}, "
        f"{request.current_selector} vs {request.previous_selector}"
    )

    try:
        metric_rows, coaching_rows = await fetch_record_sets(request.organization, request.year)
    except RecordFetchError as e:
        raise HTTPException(status_code=500, detail=f"Snapshot generation failed: {e}")

    snapshot, diagnostics = compute_snapshot_with_diagnostics(
        request,
        metric_rows,
        coaching_rows,
        behaviors_limit=settings.top_behaviors_limit,
        sub_behaviors_limit=settings.top_sub_behaviors_limit,
    )

    snapshot_id = None
    if settings.persist_snapshots:
        snapshot_id = await persist_snapshot(snapshot, request)

    return SnapshotResponse(
        snapshot=snapshot,
        snapshot_id=snapshot_id,
        diagnostics=diagnostics if body.include_diagnostics else None,
    )

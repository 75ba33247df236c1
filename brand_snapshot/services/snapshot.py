"""
Snapshot comparison engine.

Turns a ComparisonRequest plus the unfiltered metric and coaching record sets
for an organization/year into one immutable Snapshot:

    resolve_periods -> (aggregate_metrics, aggregate_coaching) -> compose_snapshot

The engine is a pure, synchronous function: no I/O, no shared state, inputs
are never modified. Empty or missing record sets degrade to undefined means
and zero sums rather than errors. The only failure is an unresolvable
request (InvalidComparisonRequestError), raised before any aggregation.

Match diagnostics (per-filter counts, distinct upstream values) are returned
as a separate MatchDiagnostics value by compute_snapshot_with_diagnostics;
they are never embedded in the Snapshot.

Usage:
    from brand_snapshot.services.snapshot import compute_snapshot

    snapshot = compute_snapshot(request, metric_rows, coaching_rows)
    snapshot.snapshot_metadata.comparison.percent_change_display  # '2.60%'
"""

import logging
from typing import Iterable, List, Optional, Tuple

from brand_snapshot.models.schemas import (
    CoachingActivity,
    CoachingChange,
    CoachingObservation,
    CoachingPeriodSummary,
    ComparisonRequest,
    DataQuality,
    MatchDiagnostics,
    MetricComparison,
    MetricObservation,
    RecordSetDiagnostics,
    Snapshot,
    SnapshotMetadata,
)
from brand_snapshot.services.coaching_aggregation import (
    TOP_BEHAVIORS_LIMIT,
    TOP_SUB_BEHAVIORS_LIMIT,
    CoachingAggregate,
    CoachingChangeAggregate,
    CoachingPeriodAggregate,
    aggregate_coaching,
)
from brand_snapshot.services.matching import (
    DEFAULT_METRIC_POLICY,
    MatchCriteria,
    MetricMatchPolicy,
    normalize_month,
)
from brand_snapshot.services.metric_aggregation import MetricAggregate, aggregate_metrics, round_half_up
from brand_snapshot.services.periods import ResolvedPeriods, format_period_label, resolve_periods


logger = logging.getLogger(__name__)

NOT_APPLICABLE: str = "N/A"
NO_EFFECTIVENESS_DATA: str = "No effectiveness data"

# All display strings round half-up, so 0.125 renders as '0.13'.


# =============================================================================
# Display Formatting
# =============================================================================


def format_number(value: Optional[float], decimals: int = 2) -> str:
    """'79.00' for 79.0; 'N/A' for None."""
    if value is None:
        return NOT_APPLICABLE
    return f"{round_half_up(value, decimals):.{decimals}f}"


def format_percent(value: Optional[float], decimals: int = 2) -> str:
    """'2.60%' for 2.6; 'N/A' for None."""
    if value is None:
        return NOT_APPLICABLE
    return f"{round_half_up(value, decimals):.{decimals}f}%"


def format_effectiveness(period: CoachingPeriodAggregate) -> str:
    """
    Render mean effectiveness with its coverage.

    >>> format_effectiveness(period)  # effectiveness 0.85, 3 of 4 rows
    '85.00% (based on 3 of 4 sessions)'
    """
    if period.effectiveness is None:
        return NO_EFFECTIVENESS_DATA
    return f"{round_half_up(period.effectiveness * 100, 2):.2f}% (based on {period.coverage} sessions)"


def format_points(value: Optional[float]) -> str:
    if value is None:
        return NOT_APPLICABLE
    return f"{round_half_up(value, 2):.2f} points"


# =============================================================================
# Composition
# =============================================================================


def _build_metric_comparison(periods: ResolvedPeriods, metrics: MetricAggregate) -> MetricComparison:
    return MetricComparison(
        current_period=format_period_label(periods.current_period, periods.year),
        previous_period=format_period_label(periods.previous_period, periods.year),
        current_value=metrics.current_value,
        previous_value=metrics.previous_value,
        change=metrics.change,
        percent_change=metrics.percent_change,
        current_value_display=format_number(metrics.current_value),
        previous_value_display=format_number(metrics.previous_value),
        change_display=format_number(metrics.change),
        percent_change_display=format_percent(metrics.percent_change),
    )


def _build_data_quality(metrics: MetricAggregate, coaching: CoachingAggregate) -> DataQuality:
    return DataQuality(
        metric_data_points_current=len(metrics.current_rows),
        metric_data_points_previous=len(metrics.previous_rows),
        total_metric_data_points=len(metrics.current_rows) + len(metrics.previous_rows),
        coaching_records_current=len(coaching.current.rows),
        coaching_records_previous=len(coaching.previous.rows),
        total_coaching_records=len(coaching.current.rows) + len(coaching.previous.rows),
        coaching_effectiveness_coverage_current=coaching.current.coverage,
        coaching_effectiveness_coverage_previous=coaching.previous.coverage,
    )


def _build_period_summary(period: CoachingPeriodAggregate) -> CoachingPeriodSummary:
    return CoachingPeriodSummary(
        period_label=format_period_label(period.months),
        months=list(period.months),
        total_coaching_sessions=period.total_sessions,
        coaching_effectiveness=period.effectiveness,
        coaching_effectiveness_display=format_effectiveness(period),
        top_behaviors=list(period.top_behaviors),
    )


def _build_change(change: CoachingChangeAggregate) -> CoachingChange:
    return CoachingChange(
        coaching_volume_change=change.volume_change,
        coaching_volume_change_pct=change.volume_change_pct,
        coaching_volume_change_pct_display=format_percent(change.volume_change_pct, decimals=1),
        effectiveness_change_points=change.effectiveness_change_points,
        effectiveness_change_display=format_points(change.effectiveness_change_points),
    )


def compose_snapshot(
    request: ComparisonRequest,
    periods: ResolvedPeriods,
    metrics: MetricAggregate,
    coaching: CoachingAggregate,
) -> Snapshot:
    """
    Assemble aggregator outputs into a Snapshot.

    Performs formatting only; every number received is carried into the
    result.
    """
    metadata = SnapshotMetadata(
        clients=list(request.clients),
        organization=request.organization,
        metric=request.metric_name,
        year=request.year,
        comparison_type=request.comparison_type,
        current_months=list(periods.current_period),
        previous_months=list(periods.previous_period),
        comparison=_build_metric_comparison(periods, metrics),
        programs_count=metrics.programs_count,
        data_quality=_build_data_quality(metrics, coaching),
    )
    activity = CoachingActivity(
        current=_build_period_summary(coaching.current),
        previous=_build_period_summary(coaching.previous),
        change=_build_change(coaching.change),
    )
    return Snapshot(snapshot_metadata=metadata, coaching_activity=activity)


# =============================================================================
# Diagnostics
# =============================================================================


def _distinct(values: Iterable[Optional[str]]) -> List[str]:
    seen = {}
    for value in values:
        if value is not None and str(value).strip():
            seen.setdefault(str(value).strip(), None)
    return list(seen)


def _record_set_diagnostics(rows, current_counts, previous_counts, policy: MetricMatchPolicy) -> RecordSetDiagnostics:
    months = _distinct(row.month if isinstance(row.month, str) else normalize_month(row.month) for row in rows)
    return RecordSetDiagnostics(
        total_rows=len(rows),
        current=current_counts,
        previous=previous_counts,
        distinct_clients=_distinct(row.client for row in rows),
        distinct_metrics=_distinct(value for row in rows for value in policy.values(row)),
        distinct_months=months,
    )


def build_match_diagnostics(
    metric_rows: List[MetricObservation],
    coaching_rows: List[CoachingObservation],
    metrics: MetricAggregate,
    coaching: CoachingAggregate,
    policy: MetricMatchPolicy = DEFAULT_METRIC_POLICY,
) -> MatchDiagnostics:
    """Collect per-filter match counts and distinct upstream values."""
    return MatchDiagnostics(
        metrics=_record_set_diagnostics(
            metric_rows, metrics.current_counts, metrics.previous_counts, policy
        ),
        coaching=_record_set_diagnostics(
            coaching_rows, coaching.current.counts, coaching.previous.counts, policy
        ),
    )


# =============================================================================
# Engine Entry Points
# =============================================================================


def compute_snapshot_with_diagnostics(
    request: ComparisonRequest,
    metric_rows: Optional[Iterable[MetricObservation]],
    coaching_rows: Optional[Iterable[CoachingObservation]],
    behaviors_limit: int = TOP_BEHAVIORS_LIMIT,
    sub_behaviors_limit: int = TOP_SUB_BEHAVIORS_LIMIT,
    policy: MetricMatchPolicy = DEFAULT_METRIC_POLICY,
) -> Tuple[Snapshot, MatchDiagnostics]:
    """
    Compute a Snapshot and its MatchDiagnostics.

    Args:
        request: Validated comparison request.
        metric_rows: Unfiltered monthly_metrics rows for the organization/year.
        coaching_rows: Unfiltered behavioral_coaching rows for the same scope.
        behaviors_limit: Top behaviors kept per coaching period.
        sub_behaviors_limit: Top sub-behaviors kept per behavior.
        policy: Metric field match policy.

    Returns:
        Tuple of (Snapshot, MatchDiagnostics).

    Raises:
        InvalidComparisonRequestError: If the request selectors cannot be
            resolved to month periods.
    """
    periods = resolve_periods(request)
    logger.info(
        f"Snapshot periods for {request.organization}/{request.metric_name} {request.year}: "
        f"performance {periods.current_period} vs {periods.previous_period}, "
        f"coaching {periods.current_coaching_period} vs {periods.previous_coaching_period}"
    )

    metric_list = list(metric_rows or ())
    coaching_list = list(coaching_rows or ())

    def criteria(months: List[str]) -> MatchCriteria:
        return MatchCriteria.for_window(
            request.clients, request.organization, request.metric_name, months, request.year
        )

    metrics = aggregate_metrics(
        metric_list,
        criteria(periods.current_period),
        criteria(periods.previous_period),
        policy,
    )
    coaching = aggregate_coaching(
        coaching_list,
        criteria(periods.current_coaching_period),
        criteria(periods.previous_coaching_period),
        policy,
        behaviors_limit,
        sub_behaviors_limit,
    )

    snapshot = compose_snapshot(request, periods, metrics, coaching)
    diagnostics = build_match_diagnostics(metric_list, coaching_list, metrics, coaching, policy)
    return snapshot, diagnostics


def compute_snapshot(
    request: ComparisonRequest,
    metric_rows: Optional[Iterable[MetricObservation]],
    coaching_rows: Optional[Iterable[CoachingObservation]],
    behaviors_limit: int = TOP_BEHAVIORS_LIMIT,
    sub_behaviors_limit: int = TOP_SUB_BEHAVIORS_LIMIT,
    policy: MetricMatchPolicy = DEFAULT_METRIC_POLICY,
) -> Snapshot:
    """Compute a Snapshot; see compute_snapshot_with_diagnostics."""
    snapshot, _ = compute_snapshot_with_diagnostics(
        request, metric_rows, coaching_rows, behaviors_limit, sub_behaviors_limit, policy
    )
    return snapshot

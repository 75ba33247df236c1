"""
Coaching activity aggregation for snapshot comparisons.

Summarizes behavioral_coaching rows for the two coaching-attribution
periods (already shifted one period earlier than the performance periods):

- Session volume: sum of coaching_count (missing/invalid counts as 0)
- Effectiveness: mean effectiveness_pct over rows that carry a value; rows
  without one are left out of both numerator and denominator
- Top behaviors: behaviors ranked by summed sessions, top 5
- Top sub-behaviors: per ranked behavior, sub-behaviors ranked by summed
  sessions, top 3; rows without a sub-behavior still count towards the
  behavior total

Ranking ties keep first-appearance order: groups are accumulated in an
insertion-ordered dict and sorted with Python's stable sort.

Percentages are rounded half-up to one decimal ('42.9%', '6.3%' for 1 of
16), or '0%' when the denominator is 0.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple, Union

from brand_snapshot.models.schemas import (
    BehaviorBreakdown,
    CoachingObservation,
    DimensionMatchCounts,
    SubBehaviorBreakdown,
)
from brand_snapshot.services.matching import (
    DEFAULT_METRIC_POLICY,
    MatchCriteria,
    MetricMatchPolicy,
    filter_records,
)
from brand_snapshot.services.metric_aggregation import mean_or_none, round_half_up, safe_float


logger = logging.getLogger(__name__)

Number = Union[int, float]


# =============================================================================
# Constants
# =============================================================================

TOP_BEHAVIORS_LIMIT: int = 5
TOP_SUB_BEHAVIORS_LIMIT: int = 3


# =============================================================================
# Data Classes
# =============================================================================


@dataclass(frozen=True)
class CoachingPeriodAggregate:
    """
    Coaching numbers for one coaching-attribution period.

    Attributes:
        months: Coaching month window.
        rows: Matched coaching rows.
        total_sessions: Sum of coaching_count.
        effectiveness: Mean effectiveness fraction, or None.
        effectiveness_rows: Number of rows with a defined effectiveness.
        top_behaviors: Ranked behavior breakdowns.
        counts: Per-predicate match counts for the window.
    """
    months: List[str]
    rows: List[CoachingObservation]
    total_sessions: Number
    effectiveness: Optional[float]
    effectiveness_rows: int
    top_behaviors: List[BehaviorBreakdown]
    counts: DimensionMatchCounts

    @property
    def coverage(self) -> str:
        """Effectiveness coverage as 'X of Y'."""
        return f"{self.effectiveness_rows} of {len(self.rows)}"


@dataclass(frozen=True)
class CoachingChangeAggregate:
    """Cross-period coaching deltas; None where undefined."""
    volume_change: Number
    volume_change_pct: Optional[float]
    effectiveness_change_points: Optional[float]


@dataclass(frozen=True)
class CoachingAggregate:
    current: CoachingPeriodAggregate
    previous: CoachingPeriodAggregate
    change: CoachingChangeAggregate


# =============================================================================
# Helpers
# =============================================================================


def session_count(row: CoachingObservation) -> Number:
    """coaching_count as a number; missing or invalid values count as 0."""
    value = safe_float(row.coaching_count)
    if value is None:
        return 0
    return int(value) if value.is_integer() else value


def format_share(part: Number, whole: Number) -> str:
    """
    Format part/whole as a one-decimal percentage.

    >>> format_share(3, 7)
    '42.9%'
    >>> format_share(1, 16)
    '6.3%'
    >>> format_share(5, 0)
    '0%'
    """
    if not whole:
        return "0%"
    return f"{round_half_up(part / whole * 100, 1):.1f}%"


def rank_groups(totals: Dict[str, Number], limit: int) -> List[Tuple[str, Number]]:
    """
    Rank group totals descending, keeping insertion order for ties.

    `totals` must be insertion-ordered by first appearance; sorted() is
    stable so equal totals keep that order.
    """
    ranked = sorted(totals.items(), key=lambda item: item[1], reverse=True)
    return ranked[:limit]


def effectiveness_values(rows: Iterable[CoachingObservation]) -> List[float]:
    """Defined effectiveness values of the given rows."""
    values = []
    for row in rows:
        value = safe_float(row.effectiveness_pct)
        if value is not None:
            values.append(value)
    return values


# =============================================================================
# Behavior Breakdowns
# =============================================================================


def get_sub_behaviors(
    rows: List[CoachingObservation],
    behavior: str,
    limit: int = TOP_SUB_BEHAVIORS_LIMIT,
) -> List[SubBehaviorBreakdown]:
    """
    Top sub-behaviors of one behavior.

    The behavior total includes rows without a sub-behavior; those rows are
    only excluded from the sub-behavior grouping itself.
    """
    behavior_total: Number = 0
    sub_totals: Dict[str, Number] = {}

    for row in rows:
        if row.behavior != behavior:
            continue
        count = session_count(row)
        behavior_total += count
        if row.sub_behavior:
            sub_totals[row.sub_behavior] = sub_totals.get(row.sub_behavior, 0) + count

    return [
        SubBehaviorBreakdown(
            sub_behavior=sub_behavior,
            sessions=count,
            percent_of_behavior=format_share(count, behavior_total),
        )
        for sub_behavior, count in rank_groups(sub_totals, limit)
    ]


def get_top_behaviors(
    rows: List[CoachingObservation],
    total_sessions: Number,
    limit: int = TOP_BEHAVIORS_LIMIT,
    sub_behavior_limit: int = TOP_SUB_BEHAVIORS_LIMIT,
) -> List[BehaviorBreakdown]:
    """
    Rank behaviors by summed sessions and attach their top sub-behaviors.

    Args:
        rows: Matched coaching rows for one period, in input order.
        total_sessions: Total sessions in the period (percent_of_total base).
        limit: Number of behaviors to keep.
        sub_behavior_limit: Number of sub-behaviors to keep per behavior.
    """
    behavior_totals: Dict[str, Number] = {}
    for row in rows:
        if row.behavior:
            behavior_totals[row.behavior] = behavior_totals.get(row.behavior, 0) + session_count(row)

    return [
        BehaviorBreakdown(
            behavior=behavior,
            sessions=count,
            percent_of_total=format_share(count, total_sessions),
            sub_behaviors=get_sub_behaviors(rows, behavior, sub_behavior_limit),
        )
        for behavior, count in rank_groups(behavior_totals, limit)
    ]


# =============================================================================
# Aggregation
# =============================================================================


def summarize_coaching_period(
    rows: List[CoachingObservation],
    months: List[str],
    counts: DimensionMatchCounts,
    behaviors_limit: int = TOP_BEHAVIORS_LIMIT,
    sub_behaviors_limit: int = TOP_SUB_BEHAVIORS_LIMIT,
) -> CoachingPeriodAggregate:
    """Compute sessions, effectiveness and ranked behaviors for matched rows."""
    total_sessions: Number = sum((session_count(row) for row in rows), 0)
    effectiveness = effectiveness_values(rows)

    return CoachingPeriodAggregate(
        months=list(months),
        rows=rows,
        total_sessions=total_sessions,
        effectiveness=mean_or_none(effectiveness),
        effectiveness_rows=len(effectiveness),
        top_behaviors=get_top_behaviors(rows, total_sessions, behaviors_limit, sub_behaviors_limit),
        counts=counts,
    )


def calculate_coaching_change(
    current: CoachingPeriodAggregate,
    previous: CoachingPeriodAggregate,
) -> CoachingChangeAggregate:
    """
    Volume and effectiveness deltas between the two coaching periods.

    volume_change_pct (one decimal) needs previous sessions > 0;
    effectiveness_change_points ((current - previous) * 100, two decimals)
    needs both effectiveness values.
    """
    volume_change = current.total_sessions - previous.total_sessions

    volume_change_pct = None
    if previous.total_sessions > 0:
        volume_change_pct = round_half_up(volume_change / previous.total_sessions * 100, 1)

    effectiveness_change_points = None
    if current.effectiveness is not None and previous.effectiveness is not None:
        effectiveness_change_points = round_half_up((current.effectiveness - previous.effectiveness) * 100, 2)

    return CoachingChangeAggregate(
        volume_change=volume_change,
        volume_change_pct=volume_change_pct,
        effectiveness_change_points=effectiveness_change_points,
    )


def aggregate_coaching(
    rows: Optional[Iterable[CoachingObservation]],
    current_criteria: MatchCriteria,
    previous_criteria: MatchCriteria,
    policy: MetricMatchPolicy = DEFAULT_METRIC_POLICY,
    behaviors_limit: int = TOP_BEHAVIORS_LIMIT,
    sub_behaviors_limit: int = TOP_SUB_BEHAVIORS_LIMIT,
) -> CoachingAggregate:
    """
    Filter coaching rows for both coaching periods and summarize them.

    Args:
        rows: Unfiltered behavioral_coaching rows for the organization/year.
            None is treated as empty.
        current_criteria: Filter for the current coaching window.
        previous_criteria: Filter for the previous coaching window.
        policy: Metric field policy passed to the matcher.
        behaviors_limit: Top behaviors to keep per period.
        sub_behaviors_limit: Top sub-behaviors to keep per behavior.

    Returns:
        CoachingAggregate with both period summaries and the change block.
    """
    all_rows = list(rows or ())
    current_match = filter_records(all_rows, current_criteria, policy)
    previous_match = filter_records(all_rows, previous_criteria, policy)

    current = summarize_coaching_period(
        current_match.rows, list(current_criteria.months), current_match.counts,
        behaviors_limit, sub_behaviors_limit,
    )
    previous = summarize_coaching_period(
        previous_match.rows, list(previous_criteria.months), previous_match.counts,
        behaviors_limit, sub_behaviors_limit,
    )

    logger.info(
        f"Coaching rows matched: current={len(current.rows)} ({', '.join(current.months)}, "
        f"{current.total_sessions} sessions), previous={len(previous.rows)} "
        f"({', '.join(previous.months)}, {previous.total_sessions} sessions)"
    )
    if not current.rows and all_rows:
        logger.warning(
            f"No coaching rows matched the current coaching window out of {len(all_rows)} rows; "
            f"per-filter counts: {current_match.counts.model_dump(exclude={'months'})}"
        )

    return CoachingAggregate(
        current=current,
        previous=previous,
        change=calculate_coaching_change(current, previous),
    )

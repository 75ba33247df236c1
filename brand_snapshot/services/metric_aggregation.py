"""
Performance metric aggregation for snapshot comparisons.

Averages the `actual` value of matching monthly_metrics rows for the current
and previous performance periods and derives the change between them.

Formulas:
    - current_value / previous_value = arithmetic mean of valid actuals
    - change = current_value - previous_value
    - percent_change = change / previous_value * 100, rounded to 2 decimals

Data sparsity is not an error: a period without valid actuals yields None,
and change/percent_change become None whenever an operand is undefined (or
the previous value is 0 for percent_change).

Dependencies:
    - numpy: mean over the valid actuals
"""

import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable, List, Optional

import numpy as np

from brand_snapshot.models.schemas import DimensionMatchCounts, MetricObservation
from brand_snapshot.services.matching import (
    DEFAULT_METRIC_POLICY,
    MatchCriteria,
    MetricMatchPolicy,
    filter_records,
)


logger = logging.getLogger(__name__)


# =============================================================================
# Numeric Helpers
# =============================================================================


def safe_float(value: Any) -> Optional[float]:
    """
    Safely convert a value to float, returning None for invalid values.

    Rejects None, empty/blank strings, booleans, non-numeric strings, NaN and
    infinities. Numeric strings such as '77.5' are accepted.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str) and not value.strip():
        return None
    try:
        float_val = float(value)
    except (ValueError, TypeError):
        return None
    if np.isnan(float_val) or np.isinf(float_val):
        return None
    return float_val


def round_half_up(value: float, decimals: int) -> float:
    """
    Round to `decimals` places with ties going away from zero.

    Works on the shortest decimal repr of the float, so 6.25 and 3.125 are
    treated as ties (built-in round() sends both to the even digit).

    >>> round_half_up(6.25, 1)
    6.3
    >>> round_half_up(3.125, 2)
    3.13
    """
    quantum = Decimal(1).scaleb(-decimals)
    return float(Decimal(repr(float(value))).quantize(quantum, rounding=ROUND_HALF_UP))


def mean_or_none(values: List[float]) -> Optional[float]:
    """Arithmetic mean, or None for an empty list."""
    if not values:
        return None
    return float(np.mean(np.array(values, dtype=np.float64)))


def calculate_change(
    current_value: Optional[float],
    previous_value: Optional[float],
) -> Optional[float]:
    if current_value is None or previous_value is None:
        return None
    return current_value - previous_value


def calculate_percent_change(
    current_value: Optional[float],
    previous_value: Optional[float],
) -> Optional[float]:
    """
    Percent change from previous to current, rounded to 2 decimals.

    Returns None when either value is undefined or previous_value is 0.

    Example:
        >>> calculate_percent_change(79.0, 77.0)
        2.6
    """
    change = calculate_change(current_value, previous_value)
    if change is None or previous_value == 0:
        return None
    return round_half_up(change / previous_value * 100, 2)


# =============================================================================
# Aggregation
# =============================================================================


@dataclass(frozen=True)
class MetricAggregate:
    """
    Metric comparison numbers for one request.

    Attributes:
        current_rows / previous_rows: Matched rows per performance period.
        current_value / previous_value: Mean actual, None if no valid values.
        change: current_value - previous_value, or None.
        percent_change: Percent change rounded to 2 decimals, or None.
        programs_count: Distinct programs over current + previous rows.
        current_counts / previous_counts: Per-predicate match counts.
    """
    current_rows: List[MetricObservation]
    previous_rows: List[MetricObservation]
    current_value: Optional[float]
    previous_value: Optional[float]
    change: Optional[float]
    percent_change: Optional[float]
    programs_count: int
    current_counts: DimensionMatchCounts
    previous_counts: DimensionMatchCounts


def extract_actuals(rows: Iterable[MetricObservation]) -> List[float]:
    """Valid numeric `actual` values of the given rows."""
    values = []
    for row in rows:
        value = safe_float(row.actual)
        if value is not None:
            values.append(value)
    return values


def count_programs(rows: Iterable[MetricObservation]) -> int:
    """Number of distinct non-null program identifiers."""
    return len({row.program for row in rows if row.program is not None})


def aggregate_metrics(
    rows: Optional[Iterable[MetricObservation]],
    current_criteria: MatchCriteria,
    previous_criteria: MatchCriteria,
    policy: MetricMatchPolicy = DEFAULT_METRIC_POLICY,
) -> MetricAggregate:
    """
    Filter metric rows for both performance periods and compare their means.

    Args:
        rows: Unfiltered monthly_metrics rows for the organization/year.
            None is treated as empty.
        current_criteria: Filter for the current performance period.
        previous_criteria: Filter for the previous performance period.
        policy: Metric field policy passed to the matcher.

    Returns:
        MetricAggregate with means, change, percent change and counts.

    Example:
        >>> agg = aggregate_metrics(rows, current, previous)
        >>> agg.current_value, agg.previous_value, agg.percent_change
        (79.0, 77.0, 2.6)
    """
    all_rows = list(rows or ())
    current = filter_records(all_rows, current_criteria, policy)
    previous = filter_records(all_rows, previous_criteria, policy)

    current_value = mean_or_none(extract_actuals(current.rows))
    previous_value = mean_or_none(extract_actuals(previous.rows))

    logger.info(
        f"Metric rows matched: current={len(current.rows)} ({', '.join(current_criteria.months)}), "
        f"previous={len(previous.rows)} ({', '.join(previous_criteria.months)})"
    )

    return MetricAggregate(
        current_rows=current.rows,
        previous_rows=previous.rows,
        current_value=current_value,
        previous_value=previous_value,
        change=calculate_change(current_value, previous_value),
        percent_change=calculate_percent_change(current_value, previous_value),
        programs_count=count_programs(current.rows + previous.rows),
        current_counts=current.counts,
        previous_counts=previous.counts,
    )

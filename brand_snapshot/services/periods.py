"""
Period resolution and coaching period shifting for snapshot comparisons.

Performance periods are the calendar months over which the metric actual is
measured. Coaching-attribution periods are offset one period earlier:
coaching delivered in period N is credited with the performance observed in
period N+1.

Shift rules:
    - Month mode: every performance month moves back one calendar month,
      cyclically (Jan -> Dec). The year filter stays the request year.
    - Quarter mode: the coaching "current" window is the performance
      previous quarter; the coaching "previous" window is that quarter moved
      back a further three months modulo 12.

The quarter rule is intentionally asymmetric with the month rule (it skips
the performance current quarter entirely); see DESIGN.md.

Usage:
    from brand_snapshot.services.periods import resolve_periods

    periods = resolve_periods(request)
    periods.current_period             # ['Jul', 'Aug', 'Sep']
    periods.current_coaching_period    # ['Apr', 'May', 'Jun']
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from brand_snapshot.models.enums import ComparisonType
from brand_snapshot.models.schemas import ComparisonRequest


# =============================================================================
# Constants
# =============================================================================

# Canonical month order; also the only accepted month selector values
MONTH_ORDER: Tuple[str, ...] = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)

QUARTER_MONTHS: Dict[str, Tuple[str, str, str]] = {
    "Q1": ("Jan", "Feb", "Mar"),
    "Q2": ("Apr", "May", "Jun"),
    "Q3": ("Jul", "Aug", "Sep"),
    "Q4": ("Oct", "Nov", "Dec"),
}

MONTHS_PER_QUARTER: int = 3


class InvalidComparisonRequestError(ValueError):
    """
    Raised when a comparison request cannot be resolved to month periods.

    Covers unknown quarter codes, month selectors outside MONTH_ORDER,
    missing selectors and unsupported comparison types. The API layer maps
    it to HTTP 400.
    """


# =============================================================================
# Data Classes
# =============================================================================


@dataclass(frozen=True)
class ResolvedPeriods:
    """
    Performance and coaching-attribution month windows for one request.

    All four lists are ordered; each coaching window has the same
    cardinality as its performance window.
    """
    comparison_type: ComparisonType
    year: int
    current_period: List[str]
    previous_period: List[str]
    current_coaching_period: List[str]
    previous_coaching_period: List[str]


# =============================================================================
# Period Resolver
# =============================================================================


def _resolve_month_selector(selector: Optional[str], role: str) -> List[str]:
    if selector is None or not str(selector).strip():
        raise InvalidComparisonRequestError(f"{role} month is required for month comparisons")
    month = str(selector).strip()
    if month not in MONTH_ORDER:
        raise InvalidComparisonRequestError(
            f"Unknown {role} month '{selector}'; expected one of {', '.join(MONTH_ORDER)}"
        )
    return [month]


def _resolve_quarter_selector(selector: Optional[str], role: str) -> List[str]:
    if selector is None or not str(selector).strip():
        raise InvalidComparisonRequestError(f"{role} quarter is required for quarter comparisons")
    quarter = str(selector).strip().upper()
    if quarter not in QUARTER_MONTHS:
        raise InvalidComparisonRequestError(
            f"Unknown {role} quarter '{selector}'; expected one of {', '.join(QUARTER_MONTHS)}"
        )
    return list(QUARTER_MONTHS[quarter])


def resolve_performance_periods(
    comparison_type: ComparisonType,
    current_selector: Optional[str],
    previous_selector: Optional[str],
) -> Tuple[List[str], List[str]]:
    """
    Resolve month/quarter selectors to ordered performance month lists.

    Args:
        comparison_type: ComparisonType.MONTH or ComparisonType.QUARTER.
        current_selector: Month code ('Jul') or quarter code ('Q3').
        previous_selector: Month code ('Jun') or quarter code ('Q2').

    Returns:
        Tuple of (current_period, previous_period).

    Raises:
        InvalidComparisonRequestError: If a selector is missing or unknown,
            or the comparison type is unsupported.

    Example:
        >>> resolve_performance_periods(ComparisonType.QUARTER, "Q3", "Q2")
        (['Jul', 'Aug', 'Sep'], ['Apr', 'May', 'Jun'])
    """
    try:
        mode = ComparisonType(comparison_type)
    except ValueError:
        raise InvalidComparisonRequestError(
            f"Unsupported comparison_type '{comparison_type}'; expected 'month' or 'quarter'"
        ) from None

    if mode == ComparisonType.MONTH:
        return (
            _resolve_month_selector(current_selector, "current"),
            _resolve_month_selector(previous_selector, "previous"),
        )

    return (
        _resolve_quarter_selector(current_selector, "current"),
        _resolve_quarter_selector(previous_selector, "previous"),
    )


# =============================================================================
# Coaching Period Shifter
# =============================================================================


def shift_month(month: str, months_back: int = 1) -> str:
    """
    Shift a month code back by `months_back` positions on the 12-month cycle.

    >>> shift_month("Jan")
    'Dec'
    >>> shift_month("Feb", 3)
    'Nov'
    """
    if month not in MONTH_ORDER:
        raise InvalidComparisonRequestError(f"Cannot shift unknown month '{month}'")
    idx = MONTH_ORDER.index(month)
    return MONTH_ORDER[(idx - months_back) % len(MONTH_ORDER)]


def shift_coaching_periods(
    comparison_type: ComparisonType,
    current_period: List[str],
    previous_period: List[str],
) -> Tuple[List[str], List[str]]:
    """
    Derive coaching-attribution windows from the performance windows.

    Args:
        comparison_type: Comparison granularity.
        current_period: Resolved current performance months.
        previous_period: Resolved previous performance months.

    Returns:
        Tuple of (current_coaching_period, previous_coaching_period).
    """
    if ComparisonType(comparison_type) == ComparisonType.MONTH:
        return (
            [shift_month(m) for m in current_period],
            [shift_month(m) for m in previous_period],
        )

    current_coaching = list(previous_period)
    previous_coaching = [shift_month(m, MONTHS_PER_QUARTER) for m in previous_period]
    return current_coaching, previous_coaching


def resolve_periods(request: ComparisonRequest) -> ResolvedPeriods:
    """
    Resolve all four month windows for a comparison request.

    Raises:
        InvalidComparisonRequestError: If the request selectors cannot be
            resolved.
    """
    current_period, previous_period = resolve_performance_periods(
        request.comparison_type,
        request.current_selector,
        request.previous_selector,
    )
    current_coaching, previous_coaching = shift_coaching_periods(
        request.comparison_type,
        current_period,
        previous_period,
    )
    return ResolvedPeriods(
        comparison_type=ComparisonType(request.comparison_type),
        year=request.year,
        current_period=current_period,
        previous_period=previous_period,
        current_coaching_period=current_coaching,
        previous_coaching_period=previous_coaching,
    )


def format_period_label(months: List[str], year: Optional[int] = None) -> str:
    """
    Render a month window as a human-readable label.

    >>> format_period_label(["Jul"], 2025)
    'Jul 2025'
    >>> format_period_label(["Apr", "May", "Jun"])
    'Apr, May, Jun'
    """
    label = ", ".join(months)
    if year is not None:
        return f"{label} {year}"
    return label

"""
Tolerant record matching for upstream metric and coaching rows.

Upstream tables are filled by several loaders and are not consistent:
organizations differ in case and padding, months appear as 'Sep',
'September', 'SEPT' or 9, and the metric lives in either the standardized
`amplifai_metric` column or the free-text `metric` column. This module is
the only place that knows about those inconsistencies.

Predicates (all five must hold for a row to match):
    - client: exact, case-sensitive membership in the request allow-list
    - organization: case-insensitive, whitespace-trimmed equality
    - metric: MetricMatchPolicy (standardized field first, free-text second)
    - month: exact code match, else canonical-month normalization
    - year: numeric equality

Each predicate is evaluated independently so filter_records can also report
how many rows each one accepted on its own.
"""

import math
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Generic, Iterable, List, Optional, Sequence, Tuple, TypeVar

from brand_snapshot.models.enums import MatchDimension
from brand_snapshot.models.schemas import DimensionMatchCounts
from brand_snapshot.services.periods import MONTH_ORDER


RowT = TypeVar("RowT")


# =============================================================================
# Month Normalization
# =============================================================================

_MONTH_FULL_NAMES: Tuple[str, ...] = (
    "january", "february", "march", "april", "may", "june",
    "july", "august", "september", "october", "november", "december",
)

# Lower-cased spelling -> canonical 3-letter code
MONTH_ALIASES: Dict[str, str] = {}
for _idx, _code in enumerate(MONTH_ORDER):
    MONTH_ALIASES[_code.lower()] = _code
    MONTH_ALIASES[_MONTH_FULL_NAMES[_idx]] = _code
    MONTH_ALIASES[str(_idx + 1)] = _code
    MONTH_ALIASES[f"{_idx + 1:02d}"] = _code
MONTH_ALIASES["sept"] = "Sep"


def normalize_month(value: Any) -> Optional[str]:
    """
    Normalize a month spelling to its canonical 3-letter code.

    Accepts abbreviations and full names in any case ('jun', 'June',
    'SEPT'), trailing periods ('Sep.') and month numbers (9, '09').

    Returns:
        Canonical code such as 'Sep', or None when the value is not a month.

    Example:
        >>> normalize_month("September")
        'Sep'
        >>> normalize_month(13) is None
        True
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, float):
        if not math.isfinite(value) or not value.is_integer():
            return None
        value = int(value)
    key = str(value).strip().rstrip(".").lower()
    return MONTH_ALIASES.get(key)


def normalize_text(value: Any) -> Optional[str]:
    """Case-fold and trim a text field; blank values become None."""
    if value is None:
        return None
    text = str(value).strip().casefold()
    return text or None


def _coerce_year(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number) or not number.is_integer():
        return None
    return int(number)


# =============================================================================
# Metric Match Policy
# =============================================================================


@dataclass(frozen=True)
class MetricMatchPolicy:
    """
    Ordered list of row attributes that may carry the metric name.

    The first field is the standardized one; later fields are free-text
    fallbacks. A row matches when any listed field equals the requested
    metric after trimming and case-folding.
    """
    fields: Tuple[str, ...] = ("metric_name", "metric_label")

    def matches(self, row: Any, metric_name: str) -> bool:
        target = normalize_text(metric_name)
        if target is None:
            return False
        for field_name in self.fields:
            if normalize_text(getattr(row, field_name, None)) == target:
                return True
        return False

    def values(self, row: Any) -> List[str]:
        """Non-blank metric values carried by a row, in policy order."""
        found = []
        for field_name in self.fields:
            raw = getattr(row, field_name, None)
            if normalize_text(raw) is not None:
                found.append(str(raw).strip())
        return found


DEFAULT_METRIC_POLICY = MetricMatchPolicy()


# =============================================================================
# Match Criteria
# =============================================================================


@dataclass(frozen=True)
class MatchCriteria:
    """
    Filter values for one period window.

    Attributes:
        clients: Client allow-list (exact, case-sensitive).
        organization: Requested organization.
        metric_name: Requested metric name.
        months: Target month codes for the window.
        year: Requested year.
    """
    clients: FrozenSet[str]
    organization: str
    metric_name: str
    months: Tuple[str, ...]
    year: int
    _normalized_months: FrozenSet[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        normalized = frozenset(
            m for m in (normalize_month(month) for month in self.months) if m is not None
        )
        object.__setattr__(self, "_normalized_months", normalized)

    @classmethod
    def for_window(
        cls,
        clients: Iterable[str],
        organization: str,
        metric_name: str,
        months: Sequence[str],
        year: int,
    ) -> "MatchCriteria":
        return cls(
            clients=frozenset(clients),
            organization=organization,
            metric_name=metric_name,
            months=tuple(months),
            year=year,
        )


# =============================================================================
# Predicates
# =============================================================================


def match_client(row: Any, criteria: MatchCriteria) -> bool:
    return getattr(row, "client", None) in criteria.clients


def match_organization(row: Any, criteria: MatchCriteria) -> bool:
    target = normalize_text(criteria.organization)
    return target is not None and normalize_text(getattr(row, "organization", None)) == target


def match_metric(
    row: Any,
    criteria: MatchCriteria,
    policy: MetricMatchPolicy = DEFAULT_METRIC_POLICY,
) -> bool:
    return policy.matches(row, criteria.metric_name)


def match_month(row: Any, criteria: MatchCriteria) -> bool:
    """Exact code match first, then canonical normalization of both sides."""
    month = getattr(row, "month", None)
    if isinstance(month, str) and month in criteria.months:
        return True
    normalized = normalize_month(month)
    return normalized is not None and normalized in criteria._normalized_months


def match_year(row: Any, criteria: MatchCriteria) -> bool:
    year = _coerce_year(getattr(row, "year", None))
    return year is not None and year == criteria.year


def evaluate_row(
    row: Any,
    criteria: MatchCriteria,
    policy: MetricMatchPolicy = DEFAULT_METRIC_POLICY,
) -> Dict[MatchDimension, bool]:
    """Evaluate every predicate for a row; no short-circuiting."""
    return {
        MatchDimension.CLIENT: match_client(row, criteria),
        MatchDimension.ORGANIZATION: match_organization(row, criteria),
        MatchDimension.METRIC: match_metric(row, criteria, policy),
        MatchDimension.MONTH: match_month(row, criteria),
        MatchDimension.YEAR: match_year(row, criteria),
    }


def row_matches(
    row: Any,
    criteria: MatchCriteria,
    policy: MetricMatchPolicy = DEFAULT_METRIC_POLICY,
) -> bool:
    return all(evaluate_row(row, criteria, policy).values())


# =============================================================================
# Filtering
# =============================================================================


@dataclass
class FilterOutcome(Generic[RowT]):
    """Rows that matched all predicates plus per-predicate match counts."""
    rows: List[RowT]
    counts: DimensionMatchCounts


def filter_records(
    rows: Optional[Iterable[RowT]],
    criteria: MatchCriteria,
    policy: MetricMatchPolicy = DEFAULT_METRIC_POLICY,
) -> FilterOutcome[RowT]:
    """
    Select the rows matching `criteria`, preserving input order.

    Args:
        rows: Observation rows; None is treated as an empty set.
        criteria: Filter values for one period window.
        policy: Metric field policy.

    Returns:
        FilterOutcome with the matched rows and DimensionMatchCounts for the
        window.
    """
    matched: List[RowT] = []
    tallies = {dimension: 0 for dimension in MatchDimension}
    total = 0

    for row in rows or ():
        total += 1
        results = evaluate_row(row, criteria, policy)
        for dimension, ok in results.items():
            if ok:
                tallies[dimension] += 1
        if all(results.values()):
            matched.append(row)

    counts = DimensionMatchCounts(
        months=list(criteria.months),
        total_rows=total,
        client=tallies[MatchDimension.CLIENT],
        organization=tallies[MatchDimension.ORGANIZATION],
        metric=tallies[MatchDimension.METRIC],
        month=tallies[MatchDimension.MONTH],
        year=tallies[MatchDimension.YEAR],
        matched=len(matched),
    )
    return FilterOutcome(rows=matched, counts=counts)

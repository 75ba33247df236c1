"""
Backend Services Module

Business logic for the Brand Snapshot service. The snapshot engine modules
(periods, matching, metric_aggregation, coaching_aggregation, snapshot) are
pure and synchronous; records and snapshot_storage own the database I/O.

Services:
- periods: performance period resolution and coaching period shifting
- matching: tolerant client/organization/metric/month/year matching
- metric_aggregation: metric means, change and percent change
- coaching_aggregation: session volume, effectiveness, ranked behaviors
- snapshot: engine entry points and snapshot composition
- records: concurrent fetching of the source record sets
- snapshot_storage: insert-only metric_snapshots persistence
"""

# =============================================================================
# Snapshot Engine Exports
# =============================================================================

from brand_snapshot.services.periods import (
    InvalidComparisonRequestError,
    ResolvedPeriods,
    resolve_periods,
    resolve_performance_periods,
    shift_coaching_periods,
    shift_month,
    MONTH_ORDER,
    QUARTER_MONTHS,
)

from brand_snapshot.services.matching import (
    MatchCriteria,
    MetricMatchPolicy,
    DEFAULT_METRIC_POLICY,
    filter_records,
    normalize_month,
)

from brand_snapshot.services.metric_aggregation import (
    MetricAggregate,
    aggregate_metrics,
    calculate_percent_change,
)

from brand_snapshot.services.coaching_aggregation import (
    CoachingAggregate,
    aggregate_coaching,
    TOP_BEHAVIORS_LIMIT,
    TOP_SUB_BEHAVIORS_LIMIT,
)

from brand_snapshot.services.snapshot import (
    compute_snapshot,
    compute_snapshot_with_diagnostics,
    compose_snapshot,
)

# =============================================================================
# Record Fetching and Storage Exports
# =============================================================================

from brand_snapshot.services.records import (
    RecordFetchError,
    fetch_record_sets,
    fetch_metric_observations,
    fetch_coaching_observations,
)

from brand_snapshot.services.snapshot_storage import (
    build_snapshot_record,
    persist_snapshot,
    standardize_metric,
    standardize_organization,
)


__all__ = [
    # periods
    "InvalidComparisonRequestError",
    "ResolvedPeriods",
    "resolve_periods",
    "resolve_performance_periods",
    "shift_coaching_periods",
    "shift_month",
    "MONTH_ORDER",
    "QUARTER_MONTHS",
    # matching
    "MatchCriteria",
    "MetricMatchPolicy",
    "DEFAULT_METRIC_POLICY",
    "filter_records",
    "normalize_month",
    # metric_aggregation
    "MetricAggregate",
    "aggregate_metrics",
    "calculate_percent_change",
    # coaching_aggregation
    "CoachingAggregate",
    "aggregate_coaching",
    "TOP_BEHAVIORS_LIMIT",
    "TOP_SUB_BEHAVIORS_LIMIT",
    # snapshot
    "compute_snapshot",
    "compute_snapshot_with_diagnostics",
    "compose_snapshot",
    # records
    "RecordFetchError",
    "fetch_record_sets",
    "fetch_metric_observations",
    "fetch_coaching_observations",
    # storage
    "build_snapshot_record",
    "persist_snapshot",
    "standardize_metric",
    "standardize_organization",
]

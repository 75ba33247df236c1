"""
Package initialization file for backend models.

Re-exports the enumerations from enums.py and the Pydantic models from
schemas.py so other modules can import them from brand_snapshot.models
directly.

Usage:
    from brand_snapshot.models import (
        ComparisonType,
        ComparisonRequest,
        MetricObservation,
        Snapshot,
    )
"""

# =============================================================================
# Enums
# =============================================================================

from brand_snapshot.models.enums import (
    ComparisonType,
    MatchDimension,
)


# =============================================================================
# Schemas
# =============================================================================

from brand_snapshot.models.schemas import (
    # Upstream observation rows
    MetricObservation,
    CoachingObservation,
    # Engine input
    ComparisonRequest,
    # Snapshot output
    MetricComparison,
    DataQuality,
    SnapshotMetadata,
    SubBehaviorBreakdown,
    BehaviorBreakdown,
    CoachingPeriodSummary,
    CoachingChange,
    CoachingActivity,
    Snapshot,
    # Diagnostics
    DimensionMatchCounts,
    RecordSetDiagnostics,
    MatchDiagnostics,
    # API
    SnapshotRequest,
    SnapshotResponse,
    HealthResponse,
)


__all__ = [
    # Enums
    "ComparisonType",
    "MatchDimension",
    # Observations
    "MetricObservation",
    "CoachingObservation",
    # Engine input
    "ComparisonRequest",
    # Snapshot output
    "MetricComparison",
    "DataQuality",
    "SnapshotMetadata",
    "SubBehaviorBreakdown",
    "BehaviorBreakdown",
    "CoachingPeriodSummary",
    "CoachingChange",
    "CoachingActivity",
    "Snapshot",
    # Diagnostics
    "DimensionMatchCounts",
    "RecordSetDiagnostics",
    "MatchDiagnostics",
    # API
    "SnapshotRequest",
    "SnapshotResponse",
    "HealthResponse",
]

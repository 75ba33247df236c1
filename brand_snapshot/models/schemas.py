"""
Pydantic models for the Brand Snapshot backend.

This module defines the data contracts flowing through the snapshot pipeline:
- Upstream observation rows (monthly_metrics, behavioral_coaching)
- The validated comparison request consumed by the engine
- The immutable Snapshot produced by the engine
- Optional match diagnostics returned alongside a Snapshot
- API request/response models for POST /snapshot

Upstream tables carry the organization under `amplifai_org` and the metric
under two columns: the standardized `amplifai_metric` and the free-text
`metric`. The observation models expose them as `organization`,
`metric_name` and `metric_label`; `from_record` performs that mapping.

Observation numeric fields (`actual`, `goal`, `coaching_count`,
`effectiveness_pct`) are kept exactly as received. Upstream data is not
clean (empty strings, numeric strings, NULLs), so coercion happens in the
aggregators rather than at validation time, where a bad value would reject
the whole row.

All snapshot models are frozen: a Snapshot is never mutated after creation.
"""

from typing import Annotated, Any, Dict, List, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StringConstraints

from brand_snapshot.models.enums import ComparisonType


# Request text fields are trimmed; client names are matched exactly and are not.
TrimmedStr = Annotated[str, StringConstraints(strip_whitespace=True)]
RequiredText = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


# =============================================================================
# Upstream Observation Rows
# =============================================================================


def _as_text(value: Any) -> Optional[str]:
    """Identifier columns arrive as text or numbers depending on the loader."""
    if value is None:
        return None
    return str(value)


class MetricObservation(BaseModel):
    """
    One monthly_metrics row: a program's metric actual/goal for one month.

    Source: monthly_metrics table, one row per program/month/metric.
    """
    model_config = ConfigDict(frozen=True)

    client: Optional[str] = None
    organization: Optional[str] = Field(
        default=None,
        description="AmplifAI organization (upstream column amplifai_org)"
    )
    metric_name: Optional[str] = Field(
        default=None,
        description="Standardized metric name (upstream column amplifai_metric)"
    )
    metric_label: Optional[str] = Field(
        default=None,
        description="Free-text metric name (upstream column metric)"
    )
    program: Optional[str] = None
    month: Optional[Union[str, int]] = None
    year: Optional[Union[int, str]] = None
    actual: Any = None
    goal: Any = None

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "MetricObservation":
        """Build an observation from a monthly_metrics row (asyncpg Record or dict)."""
        row = dict(record)
        return cls(
            client=_as_text(row.get("client")),
            organization=_as_text(row.get("amplifai_org", row.get("organization"))),
            metric_name=_as_text(row.get("amplifai_metric")),
            metric_label=_as_text(row.get("metric")),
            program=_as_text(row.get("program")),
            month=row.get("month"),
            year=row.get("year"),
            actual=row.get("actual"),
            goal=row.get("goal"),
        )


class CoachingObservation(BaseModel):
    """
    One behavioral_coaching row: coaching sessions logged for a
    program/behavior/sub-behavior in one month.

    `effectiveness_pct` is a fraction in [0, 1] upstream; it is rendered as a
    percentage by the snapshot composer.
    """
    model_config = ConfigDict(frozen=True)

    client: Optional[str] = None
    organization: Optional[str] = None
    metric_name: Optional[str] = None
    metric_label: Optional[str] = None
    program: Optional[str] = None
    month: Optional[Union[str, int]] = None
    year: Optional[Union[int, str]] = None
    behavior: Optional[str] = None
    sub_behavior: Optional[str] = None
    coaching_count: Any = None
    effectiveness_pct: Any = None

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "CoachingObservation":
        """Build an observation from a behavioral_coaching row (asyncpg Record or dict)."""
        row = dict(record)
        return cls(
            client=_as_text(row.get("client")),
            organization=_as_text(row.get("amplifai_org", row.get("organization"))),
            metric_name=_as_text(row.get("amplifai_metric")),
            metric_label=_as_text(row.get("metric")),
            program=_as_text(row.get("program")),
            month=row.get("month"),
            year=row.get("year"),
            behavior=_as_text(row.get("behavior")),
            sub_behavior=_as_text(row.get("sub_behavior")),
            coaching_count=row.get("coaching_count"),
            effectiveness_pct=row.get("effectiveness_pct"),
        )


# =============================================================================
# Engine Input
# =============================================================================


class ComparisonRequest(BaseModel):
    """
    Validated comparison request consumed by the snapshot engine.

    `current_selector` / `previous_selector` hold month codes ('Jul') in
    month mode and quarter codes ('Q3') in quarter mode. Selector resolution
    (and its failure) happens in brand_snapshot.services.periods.
    """
    model_config = ConfigDict(frozen=True)

    clients: List[str] = Field(..., min_length=1)
    organization: RequiredText
    metric_name: RequiredText
    year: int
    comparison_type: ComparisonType
    current_selector: TrimmedStr
    previous_selector: TrimmedStr


# =============================================================================
# Snapshot Output
# =============================================================================


class MetricComparison(BaseModel):
    """
    Performance metric comparison between the two performance periods.

    Numeric fields are None when undefined; the *_display fields carry the
    rendered values ('79.00', '2.60%', 'N/A').
    """
    model_config = ConfigDict(frozen=True)

    current_period: str = Field(..., description="Label such as 'Jul 2025'")
    previous_period: str
    current_value: Optional[float] = None
    previous_value: Optional[float] = None
    change: Optional[float] = None
    percent_change: Optional[float] = None
    current_value_display: str = "N/A"
    previous_value_display: str = "N/A"
    change_display: str = "N/A"
    percent_change_display: str = "N/A"


class DataQuality(BaseModel):
    """Row counts backing the snapshot numbers."""
    model_config = ConfigDict(frozen=True)

    metric_data_points_current: int = 0
    metric_data_points_previous: int = 0
    total_metric_data_points: int = 0
    coaching_records_current: int = 0
    coaching_records_previous: int = 0
    total_coaching_records: int = 0
    coaching_effectiveness_coverage_current: str = "0 of 0"
    coaching_effectiveness_coverage_previous: str = "0 of 0"


class SnapshotMetadata(BaseModel):
    """Echoed request, resolved periods, comparison numbers and data quality."""
    model_config = ConfigDict(frozen=True)

    clients: List[str]
    organization: str
    metric: str
    year: int
    comparison_type: ComparisonType
    current_months: List[str]
    previous_months: List[str]
    comparison: MetricComparison
    programs_count: int = 0
    data_quality: DataQuality


class SubBehaviorBreakdown(BaseModel):
    """Sessions for one sub-behavior within a ranked behavior."""
    model_config = ConfigDict(frozen=True)

    sub_behavior: str
    sessions: Union[int, float]
    percent_of_behavior: str


class BehaviorBreakdown(BaseModel):
    """One ranked behavior with its top sub-behaviors."""
    model_config = ConfigDict(frozen=True)

    behavior: str
    sessions: Union[int, float]
    percent_of_total: str
    sub_behaviors: List[SubBehaviorBreakdown] = Field(default_factory=list)


class CoachingPeriodSummary(BaseModel):
    """
    Coaching activity for one coaching-attribution period.

    `coaching_effectiveness` is the mean effectiveness fraction over rows that
    carry one, or None; `coaching_effectiveness_display` renders it as
    '85.00% (based on 3 of 4 sessions)' or 'No effectiveness data'.
    """
    model_config = ConfigDict(frozen=True)

    period_label: str
    months: List[str]
    total_coaching_sessions: Union[int, float] = 0
    coaching_effectiveness: Optional[float] = None
    coaching_effectiveness_display: str = "No effectiveness data"
    top_behaviors: List[BehaviorBreakdown] = Field(default_factory=list)


class CoachingChange(BaseModel):
    """Cross-period change in coaching volume and effectiveness."""
    model_config = ConfigDict(frozen=True)

    coaching_volume_change: Union[int, float] = 0
    coaching_volume_change_pct: Optional[float] = None
    coaching_volume_change_pct_display: str = "N/A"
    effectiveness_change_points: Optional[float] = None
    effectiveness_change_display: str = "N/A"


class CoachingActivity(BaseModel):
    """Current/previous coaching summaries plus the change block."""
    model_config = ConfigDict(frozen=True)

    current: CoachingPeriodSummary
    previous: CoachingPeriodSummary
    change: CoachingChange


class Snapshot(BaseModel):
    """
    Immutable result of one snapshot comparison.

    Produced once per request by
    brand_snapshot.services.snapshot.compute_snapshot.
    """
    model_config = ConfigDict(frozen=True)

    snapshot_metadata: SnapshotMetadata
    coaching_activity: CoachingActivity


# =============================================================================
# Match Diagnostics
# =============================================================================


class DimensionMatchCounts(BaseModel):
    """
    How many rows of a record set passed each filter predicate on its own,
    and how many passed all of them, for one period window.
    """
    model_config = ConfigDict(frozen=True)

    months: List[str]
    total_rows: int = 0
    client: int = 0
    organization: int = 0
    metric: int = 0
    month: int = 0
    year: int = 0
    matched: int = 0


class RecordSetDiagnostics(BaseModel):
    """Diagnostics for one record set (metrics or coaching)."""
    model_config = ConfigDict(frozen=True)

    total_rows: int = 0
    current: DimensionMatchCounts
    previous: DimensionMatchCounts
    distinct_clients: List[str] = Field(default_factory=list)
    distinct_metrics: List[str] = Field(default_factory=list)
    distinct_months: List[str] = Field(default_factory=list)


class MatchDiagnostics(BaseModel):
    """Structured match diagnostics returned alongside a Snapshot."""
    model_config = ConfigDict(frozen=True)

    metrics: RecordSetDiagnostics
    coaching: RecordSetDiagnostics


# =============================================================================
# API Request/Response Models
# =============================================================================


class SnapshotRequest(BaseModel):
    """
    Request body for POST /snapshot.

    Month mode requires current_month/previous_month ('Jul', 'Jun'); quarter
    mode requires current_quarter/previous_quarter ('Q3', 'Q2').
    """
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "clients": ["Alorica"],
                "organization": "UHC",
                "metric_name": "NPS",
                "year": 2025,
                "comparison_type": "month",
                "current_month": "Jul",
                "previous_month": "Jun",
            }
        }
    )

    clients: List[str] = Field(
        ...,
        min_length=1,
        description="Client allow-list, matched exactly (not trimmed); must not be empty"
    )
    organization: RequiredText
    metric_name: RequiredText
    year: int = Field(..., ge=1900, le=9999)
    comparison_type: ComparisonType
    current_month: Optional[TrimmedStr] = None
    previous_month: Optional[TrimmedStr] = None
    current_quarter: Optional[TrimmedStr] = None
    previous_quarter: Optional[TrimmedStr] = None
    include_diagnostics: bool = False


class SnapshotResponse(BaseModel):
    """Response body for POST /snapshot."""
    snapshot: Snapshot
    snapshot_id: Optional[Union[int, str]] = Field(
        default=None,
        description="metric_snapshots id when the snapshot was stored"
    )
    diagnostics: Optional[MatchDiagnostics] = None


class HealthResponse(BaseModel):
    """Response body for GET /health."""
    status: str = "healthy"
    details: Optional[Dict[str, Any]] = None

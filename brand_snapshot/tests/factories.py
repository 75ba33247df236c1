"""
Observation and request builders shared by the test modules.

Defaults describe one Alorica program reporting NPS for UHC in 2025;
keyword overrides replace individual fields.
"""

from typing import Any, Dict

from brand_snapshot.models.enums import ComparisonType
from brand_snapshot.models.schemas import (
    CoachingObservation,
    ComparisonRequest,
    MetricObservation,
)


def make_metric_row(**overrides: Any) -> MetricObservation:
    """MetricObservation with Alorica/UHC/NPS defaults."""
    values: Dict[str, Any] = {
        'client': 'Alorica',
        'organization': 'UHC',
        'metric_name': 'NPS',
        'metric_label': None,
        'program': 'Program A',
        'month': 'Jul',
        'year': 2025,
        'actual': 80,
        'goal': 75,
    }
    values.update(overrides)
    return MetricObservation(**values)


def make_coaching_row(**overrides: Any) -> CoachingObservation:
    """CoachingObservation with Alorica/UHC/NPS defaults."""
    values: Dict[str, Any] = {
        'client': 'Alorica',
        'organization': 'UHC',
        'metric_name': 'NPS',
        'metric_label': None,
        'program': 'Program A',
        'month': 'Jun',
        'year': 2025,
        'behavior': 'Empathy',
        'sub_behavior': 'Acknowledge feelings',
        'coaching_count': 1,
        'effectiveness_pct': None,
    }
    values.update(overrides)
    return CoachingObservation(**values)


def make_request(**overrides: Any) -> ComparisonRequest:
    """Month-mode Jul vs Jun request for Alorica/UHC/NPS 2025."""
    values: Dict[str, Any] = {
        'clients': ['Alorica'],
        'organization': 'UHC',
        'metric_name': 'NPS',
        'year': 2025,
        'comparison_type': ComparisonType.MONTH,
        'current_selector': 'Jul',
        'previous_selector': 'Jun',
    }
    values.update(overrides)
    return ComparisonRequest(**values)


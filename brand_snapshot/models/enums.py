"""
Enumeration definitions for the Brand Snapshot backend.

All enums inherit from both `str` and `Enum` so they serialize as plain
strings through Pydantic models and JSON responses.

Source references:
- api/snapshot handler: comparison_type values ('month' | 'quarter')
- Record matcher filter dimensions
"""

from enum import Enum


class ComparisonType(str, Enum):
    """
    Granularity of a snapshot comparison.

    - MONTH: compare one month against another (e.g. Jul vs Jun)
    - QUARTER: compare one quarter against another (e.g. Q3 vs Q2)
    """
    MONTH = "month"
    QUARTER = "quarter"


class MatchDimension(str, Enum):
    """
    Filter dimensions evaluated by the record matcher.

    Used as keys of the per-dimension match counts reported in
    MatchDiagnostics.
    """
    CLIENT = "client"
    ORGANIZATION = "organization"
    METRIC = "metric"
    MONTH = "month"
    YEAR = "year"

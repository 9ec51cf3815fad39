"""Data models for the cost attribution dashboard engine."""

from .enums import AttributionDimension, InstanceCategory, StorageBackend, WasteLevel
from .resource import NormalizedRecord
from .cost_attribution import AttributionBucket, AttributionReport, KPIMetrics
from .filters import (
    ALL_DATA_FILTER_SET_ID,
    CRITERIA_DIMENSIONS,
    DEFAULT_FILTER_SETS,
    FilterCriteria,
    FilterSet,
    FilterState,
    SEED_TIMESTAMP,
    StoredFilterDocument,
    default_filter_state,
)

__all__ = [
    "AttributionDimension",
    "InstanceCategory",
    "StorageBackend",
    "WasteLevel",
    "NormalizedRecord",
    "AttributionBucket",
    "AttributionReport",
    "KPIMetrics",
    "ALL_DATA_FILTER_SET_ID",
    "CRITERIA_DIMENSIONS",
    "DEFAULT_FILTER_SETS",
    "FilterCriteria",
    "FilterSet",
    "FilterState",
    "SEED_TIMESTAMP",
    "StoredFilterDocument",
    "default_filter_state",
]

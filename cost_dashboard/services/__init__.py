"""Service layer for the cost attribution dashboard engine."""

from .normalization_service import (
    NormalizationResult,
    NormalizationService,
    RecordNormalizationError,
    calculate_kpi_metrics,
)
from .attribution_service import AttributionService
from .filter_engine import FilteredData, apply_filters, build_predicate, has_active_filters
from .filter_storage_service import FilterStorageService, validate_filter_set
from .filter_service import FilterService, resolve_active_filters

__all__ = [
    "NormalizationResult",
    "NormalizationService",
    "RecordNormalizationError",
    "calculate_kpi_metrics",
    "AttributionService",
    "FilteredData",
    "apply_filters",
    "build_predicate",
    "has_active_filters",
    "FilterStorageService",
    "validate_filter_set",
    "FilterService",
    "resolve_active_filters",
]

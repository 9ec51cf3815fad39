# Copyright (c) 2025-2026 OptimNow. All Rights Reserved.
# Licensed under the Apache License, Version 2.0.
# See LICENSE file in the project root for full license information.

"""Filter set management and active filter resolution."""

import logging
import uuid
from collections.abc import Callable, Iterable, Mapping
from datetime import UTC, datetime
from typing import Any, Optional, TypeVar, Union

from ..models import (
    ALL_DATA_FILTER_SET_ID,
    CRITERIA_DIMENSIONS,
    FilterCriteria,
    FilterSet,
    FilterState,
)
from . import filter_engine
from .filter_storage_service import FilterStorageService

logger = logging.getLogger(__name__)

T = TypeVar("T")

CriteriaInput = Union[FilterCriteria, Mapping[str, Any], None]

_DIMENSION_ALIASES = {
    "wasteLevel": "waste_level",
    "instanceTypes": "instance_types",
    "jobIds": "job_ids",
}


def utc_timestamp(now: Optional[datetime] = None) -> str:
    """Format a timestamp as ISO-8601 UTC with millisecond precision."""
    now = now or datetime.now(UTC)
    return now.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def generate_filter_set_id() -> str:
    """Generate a unique filter set id from the current time and a random suffix."""
    millis = int(datetime.now(UTC).timestamp() * 1000)
    return f"filter-{millis}-{uuid.uuid4().hex[:9]}"


def resolve_active_filters(state: FilterState) -> FilterCriteria:
    """
    Resolve the criteria currently in effect.

    The all-data view uses the quick filters as a temporary overlay. Any
    other existing set contributes its own filters. An active id that
    matches no set also falls back to the quick filters.
    """
    active_set = state.get_filter_set(state.active_filter_set_id)
    if active_set is None or active_set.id == ALL_DATA_FILTER_SET_ID:
        return state.quick_filters
    return active_set.filters


def _normalize_dimensions(values: Mapping[str, Any]) -> dict[str, Any]:
    normalized: dict[str, Any] = {}
    for key, value in values.items():
        name = _DIMENSION_ALIASES.get(key, key)
        if name not in CRITERIA_DIMENSIONS:
            raise ValueError(f"Unknown filter dimension: {key}")
        normalized[name] = value
    return normalized


def _as_criteria(filters: CriteriaInput) -> FilterCriteria:
    if filters is None:
        return FilterCriteria()
    if isinstance(filters, FilterCriteria):
        return filters
    return FilterCriteria.model_validate(_normalize_dimensions(filters))


class FilterService:
    """
    Single-writer container for the filter state.

    Every mutation builds a new immutable FilterState, makes it current and
    hands it to the storage service before returning it. Refused or
    unmatched mutations return the current state untouched and write
    nothing.

    Usage::

        service = FilterService.from_storage(storage)
        service.update_quick_filters(teams=["Chen Lab"])
        visible = service.apply_filters(instances)
    """

    def __init__(
        self,
        storage: FilterStorageService,
        initial_state: Optional[FilterState] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize filter service.

        Args:
            storage: Persistence gateway written on every mutation
            initial_state: Starting state (defaults to the storage defaults)
            clock: Source of the current time, for created/last-used stamps
        """
        self.storage = storage
        self._state = initial_state or storage.default_state()
        self._clock = clock or (lambda: datetime.now(UTC))

    @classmethod
    def from_storage(cls, storage: FilterStorageService, **kwargs) -> "FilterService":
        """Create a service seeded with the persisted state."""
        return cls(storage, initial_state=storage.load(), **kwargs)

    @property
    def state(self) -> FilterState:
        return self._state

    @property
    def active_filters(self) -> FilterCriteria:
        return resolve_active_filters(self._state)

    def get_filter_set(self, filter_set_id: str) -> Optional[FilterSet]:
        return self._state.get_filter_set(filter_set_id)

    def apply_filters(self, records: Iterable[T]) -> list[T]:
        """Filter records with the active criteria."""
        return filter_engine.apply_filters(self.active_filters, records)

    def filter_summary(self, records: Optional[Iterable[T]]) -> filter_engine.FilteredData:
        """Filter records with the active criteria and report counts."""
        return filter_engine.summarize(self.active_filters, records)

    def create_filter_set(self, name: str, filters: CriteriaInput = None) -> FilterState:
        """Append a new named filter set and make it active."""
        now = utc_timestamp(self._clock())
        new_set = FilterSet(
            id=generate_filter_set_id(),
            name=name,
            is_default=False,
            filters=_as_criteria(filters),
            created_at=now,
            last_used=now,
        )
        logger.info(f"Created filter set {new_set.id} ({name})")
        return self._commit(
            self._state.model_copy(
                update={
                    "filter_sets": [*self._state.filter_sets, new_set],
                    "active_filter_set_id": new_set.id,
                }
            )
        )

    def update_filter_set(self, filter_set_id: str, name: str, filters: CriteriaInput = None) -> FilterState:
        """Replace the name and filters of an existing set."""
        if self._state.get_filter_set(filter_set_id) is None:
            logger.debug(f"Filter set {filter_set_id} not found, nothing to update")
            return self._state

        now = utc_timestamp(self._clock())
        criteria = _as_criteria(filters)
        filter_sets = [
            fs.model_copy(update={"name": name, "filters": criteria, "last_used": now})
            if fs.id == filter_set_id
            else fs
            for fs in self._state.filter_sets
        ]
        return self._commit(self._state.model_copy(update={"filter_sets": filter_sets}))

    def delete_filter_set(self, filter_set_id: str) -> FilterState:
        """Remove a non-default filter set."""
        target = self._state.get_filter_set(filter_set_id)
        if target is None:
            logger.debug(f"Filter set {filter_set_id} not found, nothing to delete")
            return self._state
        if target.is_default:
            logger.warning(f"Cannot delete default filter set {filter_set_id}")
            return self._state

        active_id = self._state.active_filter_set_id
        if active_id == filter_set_id:
            active_id = ALL_DATA_FILTER_SET_ID

        logger.info(f"Deleted filter set {filter_set_id}")
        return self._commit(
            self._state.model_copy(
                update={
                    "filter_sets": [fs for fs in self._state.filter_sets if fs.id != filter_set_id],
                    "active_filter_set_id": active_id,
                }
            )
        )

    def set_active_filter_set(self, filter_set_id: str) -> FilterState:
        """Activate an existing filter set and bump its last-used stamp."""
        if self._state.get_filter_set(filter_set_id) is None:
            logger.warning(f"Cannot activate unknown filter set {filter_set_id}")
            return self._state

        now = utc_timestamp(self._clock())
        filter_sets = [
            fs.model_copy(update={"last_used": now}) if fs.id == filter_set_id else fs
            for fs in self._state.filter_sets
        ]
        return self._commit(
            self._state.model_copy(
                update={"filter_sets": filter_sets, "active_filter_set_id": filter_set_id}
            )
        )

    def update_quick_filters(
        self, filters: Optional[Mapping[str, Any]] = None, **dimensions: Any
    ) -> FilterState:
        """
        Merge the given dimensions into the quick filters.

        Dimensions that are not mentioned keep their current values. Both
        snake_case and camelCase dimension names are accepted.

        Raises:
            ValueError: If a dimension name is unknown
        """
        partial = _normalize_dimensions({**(filters or {}), **dimensions})
        merged = FilterCriteria.model_validate({**self._state.quick_filters.model_dump(), **partial})
        return self._commit(self._state.model_copy(update={"quick_filters": merged}))

    def clear_all_filters(self) -> FilterState:
        """Return to the all-data view with empty quick filters."""
        return self._commit(
            self._state.model_copy(
                update={
                    "active_filter_set_id": ALL_DATA_FILTER_SET_ID,
                    "quick_filters": FilterCriteria(),
                }
            )
        )

    def reset(self) -> FilterState:
        """Drop persisted state and start over from the defaults."""
        self.storage.clear()
        return self._commit(self.storage.default_state())

    def _commit(self, new_state: FilterState) -> FilterState:
        self._state = new_state
        self.storage.save(new_state)
        return new_state

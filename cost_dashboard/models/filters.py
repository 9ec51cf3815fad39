# Copyright (c) 2025-2026 OptimNow. All Rights Reserved.
# Licensed under the Apache License, Version 2.0.
# See LICENSE file in the project root for full license information.

"""Filter set data models.

Field aliases match the camelCase names used in the persisted filter
document so that stored state round-trips without a translation layer.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

ALL_DATA_FILTER_SET_ID = "all-data"

CRITERIA_DIMENSIONS = (
    "teams",
    "regions",
    "waste_level",
    "instance_types",
    "status",
    "job_ids",
)


class FilterCriteria(BaseModel):
    """
    Filter values per dimension.

    An empty list places no restriction on its dimension. Values are kept
    unique in first-seen order.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    teams: list[str] = Field(default_factory=list, description="Team names to include")
    regions: list[str] = Field(default_factory=list, description="Regions to include")
    waste_level: list[str] = Field(
        default_factory=list, alias="wasteLevel", description="Waste levels to include"
    )
    instance_types: list[str] = Field(
        default_factory=list,
        alias="instanceTypes",
        description="Instance classes to include (gpu, memory, cpu)",
    )
    status: list[str] = Field(default_factory=list, description="Instance states to include")
    job_ids: list[str] = Field(default_factory=list, alias="jobIds", description="Job ids to include")

    @field_validator(*CRITERIA_DIMENSIONS, mode="before")
    @classmethod
    def _coerce_values(cls, value):
        if value is None:
            return []
        if isinstance(value, (set, frozenset, tuple)):
            value = list(value)
        return value

    @field_validator(*CRITERIA_DIMENSIONS)
    @classmethod
    def _deduplicate(cls, value: list[str]) -> list[str]:
        return list(dict.fromkeys(value))

    def is_empty(self) -> bool:
        """True when no dimension restricts anything."""
        return not any(getattr(self, dimension) for dimension in CRITERIA_DIMENSIONS)


class FilterSet(BaseModel):
    """A named, persisted filter configuration."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(..., min_length=1, description="Unique filter set identifier")
    name: str = Field(..., min_length=1, description="Display name")
    is_default: bool = Field(
        default=False, alias="isDefault", description="Default sets cannot be deleted"
    )
    filters: FilterCriteria = Field(default_factory=FilterCriteria)
    created_at: str = Field(..., alias="createdAt", description="ISO-8601 creation timestamp")
    last_used: str = Field(..., alias="lastUsed", description="ISO-8601 last activation timestamp")


class FilterState(BaseModel):
    """Complete persisted filter configuration."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    active_filter_set_id: str = Field(
        default=ALL_DATA_FILTER_SET_ID,
        alias="activeFilterSetId",
        description="Id of the filter set currently applied",
    )
    filter_sets: list[FilterSet] = Field(..., alias="filterSets")
    quick_filters: FilterCriteria = Field(
        default_factory=FilterCriteria,
        alias="quickFilters",
        description="Temporary overlay used while the all-data view is active",
    )

    @field_validator("quick_filters", mode="before")
    @classmethod
    def _default_quick_filters(cls, value):
        return FilterCriteria() if value is None else value

    @model_validator(mode="after")
    def _check_unique_ids(self) -> "FilterState":
        ids = [filter_set.id for filter_set in self.filter_sets]
        if len(ids) != len(set(ids)):
            raise ValueError("filter set ids must be unique")
        return self

    def get_filter_set(self, filter_set_id: str) -> Optional[FilterSet]:
        """Return the filter set with the given id, if any."""
        for filter_set in self.filter_sets:
            if filter_set.id == filter_set_id:
                return filter_set
        return None


class StoredFilterDocument(BaseModel):
    """Envelope written to the key-value store."""

    model_config = ConfigDict(populate_by_name=True)

    version: str
    filter_state: FilterState = Field(..., alias="filterState")


# Static timestamps keep the seed sets byte-identical across loads
SEED_TIMESTAMP = "2024-01-01T00:00:00.000Z"

DEFAULT_FILTER_SETS: tuple[FilterSet, ...] = (
    FilterSet(
        id=ALL_DATA_FILTER_SET_ID,
        name="All Data",
        is_default=True,
        filters=FilterCriteria(),
        created_at=SEED_TIMESTAMP,
        last_used=SEED_TIMESTAMP,
    ),
    FilterSet(
        id="my-lab",
        name="My Lab",
        is_default=False,
        filters=FilterCriteria(teams=["Chen Lab"]),
        created_at=SEED_TIMESTAMP,
        last_used=SEED_TIMESTAMP,
    ),
    FilterSet(
        id="us-east",
        name="US East",
        is_default=False,
        filters=FilterCriteria(regions=["us-east-1"]),
        created_at=SEED_TIMESTAMP,
        last_used=SEED_TIMESTAMP,
    ),
)


def default_filter_state() -> FilterState:
    """Build a fresh default filter state."""
    return FilterState(
        active_filter_set_id=ALL_DATA_FILTER_SET_ID,
        filter_sets=list(DEFAULT_FILTER_SETS),
        quick_filters=FilterCriteria(),
    )

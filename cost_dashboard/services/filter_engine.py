# Copyright (c) 2025-2026 OptimNow. All Rights Reserved.
# Licensed under the Apache License, Version 2.0.
# See LICENSE file in the project root for full license information.

"""Compilation and application of filter criteria over record collections.

A record passes when it satisfies every non-empty dimension (AND across
dimensions) and its value is one of that dimension's values (OR within a
dimension). Records missing the relevant field fail a non-empty dimension.
"""

import logging
from collections.abc import Callable, Iterable, Mapping
from enum import Enum
from typing import Any, Optional, TypeVar

from ..models import FilterCriteria
from ..utils.instance_category import categorize

logger = logging.getLogger(__name__)

T = TypeVar("T")

# criteria dimension -> candidate record keys (attribute name first)
DIMENSION_FIELDS: dict[str, tuple[str, ...]] = {
    "teams": ("team",),
    "regions": ("region",),
    "waste_level": ("waste_level", "wasteLevel"),
    "instance_types": ("instance_type", "instanceType"),
    "status": ("state", "status"),
    "job_ids": ("job_id", "jobId"),
}


def _read_field(record: Any, keys: tuple[str, ...]) -> Any:
    for key in keys:
        if isinstance(record, Mapping):
            value = record.get(key)
        else:
            value = getattr(record, key, None)
        if value is not None:
            return value
    return None


def _as_text(value: Any) -> Optional[str]:
    if isinstance(value, Enum):
        value = value.value
    return value if isinstance(value, str) else None


def has_active_filters(criteria: FilterCriteria) -> bool:
    """True when at least one dimension restricts the result."""
    return not criteria.is_empty()


def build_predicate(criteria: FilterCriteria) -> Callable[[Any], bool]:
    """
    Compile criteria into a predicate over a single record.

    Records may be models exposing attributes or plain mappings with
    snake_case or camelCase keys. Malformed values never raise; they simply
    do not match.
    """
    checks: list[tuple[tuple[str, ...], frozenset[str], bool]] = []
    for dimension, keys in DIMENSION_FIELDS.items():
        allowed = getattr(criteria, dimension)
        if allowed:
            checks.append((keys, frozenset(allowed), dimension == "instance_types"))

    def predicate(record: Any) -> bool:
        for keys, allowed, by_category in checks:
            value = _as_text(_read_field(record, keys))
            if value is None:
                return False
            if by_category:
                value = categorize(value).value
            if value not in allowed:
                return False
        return True

    return predicate


def apply_filters(criteria: FilterCriteria, records: Iterable[T]) -> list[T]:
    """
    Return the records matching the criteria, preserving input order.

    Example:
        >>> apply_filters(FilterCriteria(teams=["A"]), [{"team": "A"}, {"team": "B"}])
        [{'team': 'A'}]
    """
    records = list(records)
    if criteria.is_empty():
        return records

    predicate = build_predicate(criteria)
    matched = [record for record in records if predicate(record)]
    logger.debug(f"Filters matched {len(matched)} of {len(records)} records")
    return matched


class FilteredData:
    """Filtered records together with the counts a view needs to display."""

    def __init__(
        self,
        filtered: list,
        total_count: int,
        filtered_count: int,
        has_active_filters: bool,
    ):
        self.filtered = filtered
        self.total_count = total_count
        self.filtered_count = filtered_count
        self.has_active_filters = has_active_filters


def summarize(criteria: FilterCriteria, records: Optional[Iterable[T]]) -> FilteredData:
    """Apply criteria and report how many records survived."""
    if records is None:
        return FilteredData(filtered=[], total_count=0, filtered_count=0, has_active_filters=False)

    records = list(records)
    active = has_active_filters(criteria)
    filtered = apply_filters(criteria, records) if active else records
    return FilteredData(
        filtered=filtered,
        total_count=len(records),
        filtered_count=len(filtered),
        has_active_filters=active,
    )

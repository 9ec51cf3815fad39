# Copyright (c) 2025-2026 OptimNow. All Rights Reserved.
# Licensed under the Apache License, Version 2.0.
# See LICENSE file in the project root for full license information.

"""Persistence of filter state to a durable key-value store.

The stored document is ``{"version": ..., "filterState": {...}}``. Any
problem reading it (missing key, bad JSON, a different version, missing
fields) yields the default state. A version mismatch deliberately discards
every user customization; there is no field-level migration.
"""

import json
import logging
from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import ValidationError

from ..clients.storage import KeyValueStore, StorageError
from ..models import (
    ALL_DATA_FILTER_SET_ID,
    DEFAULT_FILTER_SETS,
    FilterCriteria,
    FilterSet,
    FilterState,
    SEED_TIMESTAMP,
    StoredFilterDocument,
)

logger = logging.getLogger(__name__)

DEFAULT_STORAGE_KEY = "tracer-ec2-dashboard-filters"
DEFAULT_STORAGE_VERSION = "1.0"

# jobIds is filled in on load, so older sets without it remain valid
REQUIRED_CRITERIA_KEYS = ("teams", "regions", "wasteLevel", "instanceTypes", "status")


def validate_filter_set(data: Any) -> bool:
    """
    Check that a raw filter set carries every required field.

    Requires a non-empty id and name, a boolean ``isDefault`` and a
    ``filters`` object holding a list for each criteria dimension. ``jobIds``
    may be absent, since loading fills it in, but must be a list if present.
    """
    if not isinstance(data, Mapping):
        return False
    if not data.get("id") or not data.get("name"):
        return False
    if not isinstance(data.get("isDefault"), bool):
        return False
    filters = data.get("filters")
    if not isinstance(filters, Mapping):
        return False
    if not all(isinstance(filters.get(key), list) for key in REQUIRED_CRITERIA_KEYS):
        return False
    return filters.get("jobIds") is None or isinstance(filters["jobIds"], list)


def _with_timestamps(raw: Any) -> Any:
    """Fill timestamps missing from sets saved before they were recorded."""
    if not isinstance(raw, Mapping):
        return raw
    filled = dict(raw)
    if filled.get("createdAt") is None:
        filled["createdAt"] = SEED_TIMESTAMP
    if filled.get("lastUsed") is None:
        filled["lastUsed"] = filled["createdAt"]
    return filled


class FilterStorageService:
    """
    Loads and saves filter state.

    Never raises to its caller: write failures are logged and leave the
    in-memory state authoritative, read failures fall back to defaults.
    """

    def __init__(
        self,
        store: KeyValueStore,
        storage_key: str = DEFAULT_STORAGE_KEY,
        version: str = DEFAULT_STORAGE_VERSION,
        seed_filter_sets: Iterable[FilterSet] = DEFAULT_FILTER_SETS,
    ):
        """
        Initialize filter storage service.

        Args:
            store: Durable key-value store
            storage_key: Key holding the filter document
            version: Version token written on save and required on load
            seed_filter_sets: Filter sets present in a fresh state and
                restored on load when missing
        """
        self.store = store
        self.storage_key = storage_key
        self.version = version
        self.seed_filter_sets = tuple(seed_filter_sets)

    def default_state(self) -> FilterState:
        """Build the state used when nothing usable is stored."""
        return FilterState(
            active_filter_set_id=ALL_DATA_FILTER_SET_ID,
            filter_sets=list(self.seed_filter_sets),
            quick_filters=FilterCriteria(),
        )

    def save(self, state: FilterState) -> bool:
        """
        Persist the full filter state.

        Returns:
            True if written, False if the store failed
        """
        document = StoredFilterDocument(version=self.version, filter_state=state)
        try:
            self.store.set(self.storage_key, document.model_dump_json(by_alias=True))
        except StorageError as e:
            logger.warning(f"Failed to save filters to storage: {e}")
            return False
        logger.debug(f"Saved {len(state.filter_sets)} filter sets to {self.storage_key}")
        return True

    def load(self) -> FilterState:
        """
        Read filter state, reconciling it with the seed filter sets.

        Returns:
            The stored state with missing seed sets appended, or the default
            state if nothing usable is stored
        """
        try:
            stored = self.store.get(self.storage_key)
        except StorageError as e:
            logger.warning(f"Failed to load filters from storage: {e}")
            return self.default_state()

        if not stored:
            return self.default_state()

        try:
            data = json.loads(stored)
        except json.JSONDecodeError as e:
            logger.warning(f"Stored filter document is not valid JSON: {e}")
            return self.default_state()

        if not isinstance(data, dict):
            logger.warning("Stored filter document is not an object, using defaults")
            return self.default_state()

        if data.get("version") != self.version:
            logger.info(
                f"Filter storage version mismatch ({data.get('version')!r} != {self.version!r}), "
                f"using defaults"
            )
            return self.default_state()

        filter_state = data.get("filterState")
        if not isinstance(filter_state, dict) or not isinstance(filter_state.get("filterSets"), list):
            logger.warning("Stored filter document is missing required fields, using defaults")
            return self.default_state()

        try:
            return self._reconcile(filter_state)
        except ValidationError as e:
            logger.warning(f"Stored filter state is invalid ({e.error_count()} errors), using defaults")
            return self.default_state()

    def clear(self) -> bool:
        """
        Remove the stored filter document.

        Returns:
            True if removed, False if the store failed
        """
        try:
            self.store.delete(self.storage_key)
        except StorageError as e:
            logger.warning(f"Failed to clear filter storage: {e}")
            return False
        return True

    def _reconcile(self, filter_state: dict) -> FilterState:
        # Validation fills missing criteria dimensions with empty lists
        filter_sets = [
            FilterSet.model_validate(_with_timestamps(fs)) for fs in filter_state["filterSets"]
        ]
        stored_ids = {fs.id for fs in filter_sets}

        missing_seeds = [fs for fs in self.seed_filter_sets if fs.id not in stored_ids]
        if missing_seeds:
            logger.info(f"Restoring seed filter sets: {[fs.id for fs in missing_seeds]}")
        filter_sets.extend(missing_seeds)

        filter_sets = [
            fs.model_copy(update={"is_default": True})
            if fs.id == ALL_DATA_FILTER_SET_ID and not fs.is_default
            else fs
            for fs in filter_sets
        ]

        active_id = filter_state.get("activeFilterSetId")
        if not isinstance(active_id, str) or active_id not in {fs.id for fs in filter_sets}:
            active_id = ALL_DATA_FILTER_SET_ID

        return FilterState(
            active_filter_set_id=active_id,
            filter_sets=filter_sets,
            quick_filters=FilterCriteria.model_validate(filter_state.get("quickFilters") or {}),
        )

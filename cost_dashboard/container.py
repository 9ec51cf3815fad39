# Copyright (c) 2025-2026 OptimNow. All Rights Reserved.
# Licensed under the Apache License, Version 2.0.
# See LICENSE file in the project root for full license information.

"""Service container for dependency wiring.

Builds the key-value store, the filter persistence gateway and the engine
services from settings, so that entry points (HTTP handlers, scripts,
tests) share one filter state handle instead of a module-level singleton.
"""

import logging
from typing import Optional

from .clients.storage import InMemoryStore, JsonFileStore, KeyValueStore, RedisStore, StorageError
from .config import Settings, settings as get_default_settings
from .models.enums import StorageBackend
from .services.attribution_service import AttributionService
from .services.filter_service import FilterService
from .services.filter_storage_service import FilterStorageService
from .services.normalization_service import NormalizationService
from .utils.logging_config import configure_logging

logger = logging.getLogger(__name__)


def build_store(settings: Settings) -> KeyValueStore:
    """
    Create the configured key-value store.

    Falls back to an in-memory store if the configured backend cannot be
    created, so the dashboard keeps working for the current session.
    """
    try:
        if settings.storage_backend == StorageBackend.REDIS:
            return RedisStore(redis_url=settings.redis_url)
        if settings.storage_backend == StorageBackend.FILE:
            return JsonFileStore(settings.storage_file_path)
    except StorageError as e:
        logger.warning(f"ServiceContainer: failed to create {settings.storage_backend.value} store: {e}")
    return InMemoryStore()


class ServiceContainer:
    """
    Wires together the engine services.

    Usage::

        container = ServiceContainer()
        container.initialize()

        report = container.attribution_service.aggregate_raw(resources)
        visible = container.filter_service.apply_filters(instances)
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        store: Optional[KeyValueStore] = None,
        configure_logs: bool = False,
    ) -> None:
        """
        Create a ServiceContainer.

        Args:
            settings: Application settings. If None, loads from environment
                      variables / .env file via the default ``settings()`` helper.
            store: Key-value store overriding the configured backend
            configure_logs: Apply logging settings (level, CloudWatch) on initialize
        """
        self._settings: Settings = settings or get_default_settings()
        self._store = store
        self._configure_logs = configure_logs
        self._initialized = False

        self._normalization_service: Optional[NormalizationService] = None
        self._attribution_service: Optional[AttributionService] = None
        self._filter_storage: Optional[FilterStorageService] = None
        self._filter_service: Optional[FilterService] = None

    def initialize(self) -> None:
        """Create all services and load the persisted filter state."""
        if self._initialized:
            logger.warning("ServiceContainer.initialize() called more than once")
            return

        s = self._settings
        if self._configure_logs:
            configure_logging(s)
        logger.info("ServiceContainer: initializing services")

        if self._store is None:
            self._store = build_store(s)

        self._normalization_service = NormalizationService(
            default_resource_cost=s.default_resource_cost
        )
        self._attribution_service = AttributionService(self._normalization_service)
        self._filter_storage = FilterStorageService(
            store=self._store,
            storage_key=s.filter_storage_key,
            version=s.filter_storage_version,
        )
        self._filter_service = FilterService.from_storage(self._filter_storage)
        logger.info(
            f"ServiceContainer: filter state loaded "
            f"({len(self._filter_service.state.filter_sets)} filter sets)"
        )

        self._initialized = True

    def shutdown(self) -> None:
        """Release the store connection, if it holds one."""
        if isinstance(self._store, RedisStore):
            self._store.close()
        self._initialized = False

    # ------------------------------------------------------------------
    # Accessor properties
    # ------------------------------------------------------------------

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def initialized(self) -> bool:
        return self._initialized

    @property
    def store(self) -> Optional[KeyValueStore]:
        return self._store

    @property
    def normalization_service(self) -> Optional[NormalizationService]:
        return self._normalization_service

    @property
    def attribution_service(self) -> Optional[AttributionService]:
        return self._attribution_service

    @property
    def filter_storage(self) -> Optional[FilterStorageService]:
        return self._filter_storage

    @property
    def filter_service(self) -> Optional[FilterService]:
        return self._filter_service

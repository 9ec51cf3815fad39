# Copyright (c) 2025-2026 OptimNow. All Rights Reserved.
# Licensed under the Apache License, Version 2.0.
# See LICENSE file in the project root for full license information.

"""Enumerations for attribution dimensions, instance classes and waste levels."""

from enum import Enum


class AttributionDimension(str, Enum):
    """Axes along which cloud spend is grouped."""

    TEAM = "team"
    PROJECT = "project"
    ENVIRONMENT = "environment"
    INSTANCE_TYPE = "instance_type"
    REGION = "region"


class InstanceCategory(str, Enum):
    """Coarse instance class used by the instance type filter."""

    GPU = "gpu"
    MEMORY = "memory"
    CPU = "cpu"


class WasteLevel(str, Enum):
    """Utilization-derived waste classification."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class StorageBackend(str, Enum):
    """Key-value stores available for filter persistence."""

    MEMORY = "memory"
    FILE = "file"
    REDIS = "redis"

# Copyright (c) 2025-2026 OptimNow. All Rights Reserved.
# Licensed under the Apache License, Version 2.0.
# See LICENSE file in the project root for full license information.

"""Instance type classification.

Rules are evaluated in order and the first match wins, so accelerated
families must stay ahead of the memory-optimized ones.
"""

from typing import Optional

from ..models.enums import InstanceCategory

CATEGORY_RULES: tuple[tuple[InstanceCategory, tuple[str, ...]], ...] = (
    (InstanceCategory.GPU, ("p3", "g4", "gpu")),
    (InstanceCategory.MEMORY, ("r5", "r6", "x1", "memory")),
)

DEFAULT_CATEGORY = InstanceCategory.CPU


def categorize(instance_type: Optional[str]) -> InstanceCategory:
    """
    Classify an instance type identifier as gpu, memory or cpu.

    Matching is a case-insensitive substring check against each rule's
    markers. Anything unmatched, including an empty identifier, falls into
    the general purpose cpu bucket.

    Example:
        >>> categorize("p3.2xlarge")
        <InstanceCategory.GPU: 'gpu'>
        >>> categorize("t2.micro")
        <InstanceCategory.CPU: 'cpu'>
    """
    identifier = (instance_type or "").lower()
    for category, markers in CATEGORY_RULES:
        if any(marker in identifier for marker in markers):
            return category
    return DEFAULT_CATEGORY

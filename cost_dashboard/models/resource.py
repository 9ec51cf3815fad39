# Copyright (c) 2025-2026 OptimNow. All Rights Reserved.
# Licensed under the Apache License, Version 2.0.
# See LICENSE file in the project root for full license information.

"""Normalized resource / cost line item model."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from .enums import WasteLevel


class NormalizedRecord(BaseModel):
    """
    One tracked resource or cost line item in a uniform shape.

    Attribution fields are optional. ``None`` means the resource is untagged
    on that dimension, while an empty string is a legitimate tag value.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(..., min_length=1, description="Stable resource identifier")
    name: Optional[str] = Field(default=None, description="Display name of the resource")
    team: Optional[str] = Field(default=None, description="Owning team")
    project: Optional[str] = Field(default=None, description="Project or application")
    environment: Optional[str] = Field(default=None, description="Deployment environment")
    instance_type: Optional[str] = Field(
        default=None,
        alias="instanceType",
        description="Instance type identifier (e.g. m5.large)",
    )
    region: Optional[str] = Field(default=None, description="Cloud region")
    state: Optional[str] = Field(default=None, description="Lifecycle state (running, stopped, ...)")
    waste_level: Optional[WasteLevel] = Field(
        default=None,
        alias="wasteLevel",
        description="Waste classification supplied by the caller or derived from the efficiency score",
    )
    efficiency_score: Optional[float] = Field(
        default=None,
        ge=0.0,
        le=100.0,
        allow_inf_nan=False,
        alias="efficiencyScore",
        description="How well the instance's capacity is used (0-100)",
    )
    job_id: Optional[str] = Field(default=None, alias="jobId", description="Workload job identifier")
    cost: float = Field(
        default=0.0,
        ge=0.0,
        allow_inf_nan=False,
        description="Monetary value attributable to this record for the query window",
    )
    tags: dict[str, str] = Field(default_factory=dict, description="Raw resource tags")

    @property
    def is_attributed(self) -> bool:
        """True when at least one tag-based dimension carries a value."""
        return any(
            value is not None for value in (self.team, self.project, self.environment)
        )

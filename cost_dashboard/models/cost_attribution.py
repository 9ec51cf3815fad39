# Copyright (c) 2025-2026 OptimNow. All Rights Reserved.
# Licensed under the Apache License, Version 2.0.
# See LICENSE file in the project root for full license information.

"""Data models for cost attribution analysis."""

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field

from .enums import AttributionDimension


class AttributionBucket(BaseModel):
    """Accumulated spend for one category value within one dimension."""

    model_config = ConfigDict(frozen=True)

    category: str = Field(description="Category value, e.g. a team name")
    cost: float = Field(ge=0.0, description="Sum of contributing records' cost")
    instance_count: int = Field(ge=0, description="Number of contributing records")
    percentage: float = Field(
        ge=0.0, description="Share of total cost (0-100), 0 when total cost is 0"
    )


class AttributionReport(BaseModel):
    """
    Result of one aggregation pass over a snapshot of records.

    Shows how much of the cloud spend can be traced to a team, project or
    environment tag and how that spend splits along each dimension. Bucket
    lists keep the order in which categories were first seen.
    """

    model_config = ConfigDict(frozen=True)

    total_cost: float = Field(ge=0.0, description="Total spend of all records")
    attributed_cost: float = Field(
        ge=0.0, description="Spend of records tagged on at least one taggable dimension"
    )
    unaccounted_cost: float = Field(description="total_cost - attributed_cost")
    attribution_rate: float = Field(
        ge=0.0, description="attributed_cost as a percentage of total_cost (0-100)"
    )
    by_team: list[AttributionBucket] = Field(default_factory=list)
    by_project: list[AttributionBucket] = Field(default_factory=list)
    by_environment: list[AttributionBucket] = Field(default_factory=list)
    by_instance_type: list[AttributionBucket] = Field(default_factory=list)
    by_region: list[AttributionBucket] = Field(default_factory=list)
    untagged_instance_count: int = Field(
        default=0, ge=0, description="Records without any taggable attribution"
    )
    dropped_record_count: int = Field(
        default=0, ge=0, description="Malformed records skipped during aggregation"
    )
    generated_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        description="When this report was produced",
    )

    def breakdowns(self) -> dict[AttributionDimension, list[AttributionBucket]]:
        """Return all dimension breakdowns keyed by dimension."""
        return {
            AttributionDimension.TEAM: self.by_team,
            AttributionDimension.PROJECT: self.by_project,
            AttributionDimension.ENVIRONMENT: self.by_environment,
            AttributionDimension.INSTANCE_TYPE: self.by_instance_type,
            AttributionDimension.REGION: self.by_region,
        }


class KPIMetrics(BaseModel):
    """Headline instance counts and the estimated monthly savings."""

    model_config = ConfigDict(frozen=True)

    active_instances: int = Field(ge=0, description="Instances in the running state")
    underutilized_instances: int = Field(
        ge=0, description="Running instances with an efficiency score below 40"
    )
    potential_savings: float = Field(
        ge=0.0, description="Estimated monthly savings from rightsizing underutilized instances"
    )

    @property
    def formatted_savings(self) -> str:
        return f"${self.potential_savings:.2f}"

# Copyright (c) 2025-2026 OptimNow. All Rights Reserved.
# Licensed under the Apache License, Version 2.0.
# See LICENSE file in the project root for full license information.

"""Normalization of raw resource descriptions into attribution records."""

import logging
import math
from collections.abc import Iterable, Mapping
from typing import Any, Optional

from pydantic import ValidationError

from ..models import KPIMetrics, NormalizedRecord, WasteLevel
from ..utils.arn_utils import (
    UNKNOWN_REGION,
    get_region_from_arn,
    is_valid_arn,
    parse_arn,
    region_from_availability_zone,
)

logger = logging.getLogger(__name__)

# Tag keys are matched by case-insensitive substring; first matching tag wins
TAG_DIMENSION_RULES: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("team", ("team", "owner")),
    ("project", ("project", "application")),
    ("environment", ("environment", "env")),
)

HOURS_PER_MONTH = 24 * 30

UNDERUTILIZED_EFFICIENCY_THRESHOLD = 40

# Share of monthly cost recoverable by rightsizing, per waste level
SAVINGS_RATES: dict[WasteLevel, float] = {
    WasteLevel.HIGH: 0.7,
    WasteLevel.MEDIUM: 0.3,
}


class RecordNormalizationError(Exception):
    """Raised when a raw resource cannot be turned into a record."""

    pass


class NormalizationResult:
    """Records produced from a batch plus the number of inputs skipped."""

    def __init__(self, records: list[NormalizedRecord], dropped_count: int = 0):
        self.records = records
        self.dropped_count = dropped_count


def calculate_efficiency_score(cpu_utilization: float, memory_utilization: float) -> float:
    """
    Score how well an instance's capacity is used, from 0 to 100.

    Average utilization between 60% and 90% is the target band. Lower
    utilization is penalized heavily, higher utilization moderately since it
    usually means the instance is undersized rather than wasted.
    """
    avg_utilization = (cpu_utilization + memory_utilization) / 2

    if 60 <= avg_utilization <= 90:
        return min(100.0, avg_utilization + 10)
    if avg_utilization < 60:
        return max(0.0, avg_utilization * 0.8)
    return max(60.0, 100 - (avg_utilization - 90) * 2)


def determine_waste_level(efficiency_score: float) -> WasteLevel:
    """Map an efficiency score to a waste level."""
    if efficiency_score >= 70:
        return WasteLevel.LOW
    if efficiency_score >= 40:
        return WasteLevel.MEDIUM
    return WasteLevel.HIGH


def calculate_kpi_metrics(records: Iterable[NormalizedRecord]) -> KPIMetrics:
    """
    Summarize running and underutilized instances.

    An instance is underutilized when it is running and its efficiency
    score is below 40. Records without a score are never counted as
    underutilized. Potential savings take 70% of the monthly cost of
    underutilized high-waste instances and 30% of medium-waste ones.

    Args:
        records: Normalized instance records

    Returns:
        KPIMetrics for the records
    """
    active = 0
    underutilized = 0
    savings = 0.0
    for record in records:
        if (record.state or "").lower() != "running":
            continue
        active += 1
        score = record.efficiency_score
        if score is None or score >= UNDERUTILIZED_EFFICIENCY_THRESHOLD:
            continue
        underutilized += 1
        savings += record.cost * SAVINGS_RATES.get(record.waste_level, 0.0)

    return KPIMetrics(
        active_instances=active,
        underutilized_instances=underutilized,
        potential_savings=savings,
    )


def _first(raw: Mapping, *keys: str) -> Any:
    """Return the first non-None value among the given keys."""
    for key in keys:
        value = raw.get(key)
        if value is not None:
            return value
    return None


def _as_number(value: Any, field: str) -> float:
    if isinstance(value, bool):
        raise RecordNormalizationError(f"{field} must be numeric, got {value!r}")
    try:
        number = float(value)
    except (TypeError, ValueError) as e:
        raise RecordNormalizationError(f"{field} must be numeric, got {value!r}") from e
    if math.isnan(number) or math.isinf(number):
        raise RecordNormalizationError(f"{field} must be finite, got {value!r}")
    return number


def extract_tags(raw: Mapping) -> dict[str, str]:
    """
    Read resource tags from either AWS list form or a plain mapping.

    Accepts ``Tags: [{"Key": ..., "Value": ...}]`` (EC2 and tagging API) and
    ``tags: {key: value}``. Tag entries without a key are ignored; a missing
    value becomes the empty string.
    """
    source = _first(raw, "tags", "Tags", "TagList")
    if source is None:
        return {}

    if isinstance(source, Mapping):
        pairs = source.items()
    elif isinstance(source, (list, tuple)):
        pairs = []
        for entry in source:
            if not isinstance(entry, Mapping):
                raise RecordNormalizationError(f"Malformed tag entry: {entry!r}")
            pairs.append((entry.get("Key"), entry.get("Value")))
    else:
        raise RecordNormalizationError(f"Unsupported tag structure: {type(source).__name__}")

    tags: dict[str, str] = {}
    for key, value in pairs:
        if not key:
            continue
        tags[str(key)] = "" if value is None else str(value)
    return tags


def attribute_tags(tags: Mapping[str, str]) -> dict[str, str]:
    """
    Derive team, project and environment values from tag keys.

    Example:
        >>> attribute_tags({"OwnerEmail": "a@x", "env": "prod"})
        {'team': 'a@x', 'environment': 'prod'}
    """
    attribution: dict[str, str] = {}
    for key, value in tags.items():
        lowered = key.lower()
        for dimension, markers in TAG_DIMENSION_RULES:
            if dimension in attribution:
                continue
            if any(marker in lowered for marker in markers):
                attribution[dimension] = value
    return attribution


class NormalizationService:
    """
    Turns heterogeneous resource payloads into NormalizedRecord instances.

    Understands AWS Resource Groups Tagging API mappings, EC2
    DescribeInstances entries and already-flat dictionaries. Region is taken
    from the resource's location, never from tags, and is always set.
    """

    def __init__(self, default_resource_cost: float = 50.0):
        """
        Initialize normalization service.

        Args:
            default_resource_cost: Flat cost estimate for resources that carry
                no cost data of their own
        """
        self.default_resource_cost = default_resource_cost

    def normalize(self, raw: Mapping) -> NormalizedRecord:
        """
        Normalize one raw resource.

        Args:
            raw: Resource description

        Returns:
            NormalizedRecord for the resource

        Raises:
            RecordNormalizationError: If the resource has no identity or
                carries malformed values
        """
        if not isinstance(raw, Mapping):
            raise RecordNormalizationError(f"Resource must be a mapping, got {type(raw).__name__}")

        arn = _first(raw, "arn", "ResourceARN")
        resource_id = self._resolve_id(raw, arn)
        tags = extract_tags(raw)
        attribution = attribute_tags(tags)

        for dimension in ("team", "project", "environment"):
            explicit = raw.get(dimension)
            if explicit is not None:
                attribution[dimension] = str(explicit)

        efficiency_score = self._resolve_efficiency_score(raw)

        state = _first(raw, "state", "State")
        if isinstance(state, Mapping):
            state = state.get("Name")

        try:
            return NormalizedRecord(
                id=resource_id,
                name=_first(raw, "name", "Name") or tags.get("Name"),
                team=attribution.get("team"),
                project=attribution.get("project"),
                environment=attribution.get("environment"),
                instance_type=_first(raw, "instance_type", "instanceType", "InstanceType"),
                region=self._resolve_region(raw, arn),
                state=state,
                waste_level=self._resolve_waste_level(raw, efficiency_score),
                efficiency_score=efficiency_score,
                job_id=_first(raw, "job_id", "jobId"),
                cost=self._resolve_cost(raw),
                tags=tags,
            )
        except ValidationError as e:
            raise RecordNormalizationError(f"Invalid resource {resource_id}: {e}") from e

    def normalize_many(self, raws: Iterable[Any]) -> NormalizationResult:
        """
        Normalize a batch, skipping resources that cannot be normalized.

        Args:
            raws: Raw resource descriptions

        Returns:
            NormalizationResult with the records in input order and the
            number of inputs dropped
        """
        records: list[NormalizedRecord] = []
        dropped = 0
        for raw in raws:
            try:
                records.append(self.normalize(raw))
            except RecordNormalizationError as e:
                dropped += 1
                logger.warning(f"Skipping malformed resource: {e}")

        if dropped:
            logger.warning(f"Dropped {dropped} malformed resources during normalization")
        logger.debug(f"Normalized {len(records)} resources")
        return NormalizationResult(records=records, dropped_count=dropped)

    def _resolve_id(self, raw: Mapping, arn: Optional[str]) -> str:
        resource_id = _first(raw, "id", "resource_id", "instanceId", "InstanceId")
        if resource_id is None and arn:
            resource_id = parse_arn(arn)["resource_id"] if is_valid_arn(arn) else arn
        if resource_id is None or str(resource_id).strip() == "":
            raise RecordNormalizationError("Resource has no identity field")
        return str(resource_id)

    def _resolve_region(self, raw: Mapping, arn: Optional[str]) -> str:
        region = _first(raw, "region", "Region")
        if region:
            return str(region)
        if arn:
            region = get_region_from_arn(arn)
            if region != UNKNOWN_REGION:
                return region
        placement = raw.get("Placement")
        zone = placement.get("AvailabilityZone") if isinstance(placement, Mapping) else None
        zone = zone or _first(raw, "availability_zone", "availabilityZone")
        return region_from_availability_zone(zone) or UNKNOWN_REGION

    def _resolve_cost(self, raw: Mapping) -> float:
        cost = _first(raw, "cost", "monthly_cost", "monthlyCost")
        if cost is not None:
            value = _as_number(cost, "cost")
        else:
            hourly = _first(raw, "cost_per_hour", "costPerHour")
            if hourly is None:
                return self.default_resource_cost
            value = _as_number(hourly, "cost_per_hour") * HOURS_PER_MONTH

        if value < 0:
            raise RecordNormalizationError(f"cost must not be negative, got {value}")
        return value

    def _resolve_efficiency_score(self, raw: Mapping) -> Optional[float]:
        supplied = _first(raw, "efficiency_score", "efficiencyScore")
        if supplied is not None:
            return _as_number(supplied, "efficiency_score")

        cpu = _first(raw, "cpu_utilization", "cpuUtilization")
        memory = _first(raw, "memory_utilization", "memoryUtilization")
        if cpu is None or memory is None:
            return None
        return calculate_efficiency_score(
            _as_number(cpu, "cpu_utilization"), _as_number(memory, "memory_utilization")
        )

    def _resolve_waste_level(
        self, raw: Mapping, efficiency_score: Optional[float]
    ) -> Optional[WasteLevel]:
        supplied = _first(raw, "waste_level", "wasteLevel")
        if supplied is not None:
            try:
                return WasteLevel(str(supplied).lower())
            except ValueError as e:
                raise RecordNormalizationError(f"Unknown waste level {supplied!r}") from e

        if efficiency_score is None:
            return None
        return determine_waste_level(efficiency_score)

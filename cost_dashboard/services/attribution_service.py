# Copyright (c) 2025-2026 OptimNow. All Rights Reserved.
# Licensed under the Apache License, Version 2.0.
# See LICENSE file in the project root for full license information.

"""Cost attribution aggregation over a snapshot of normalized records."""

import logging
import math
from collections.abc import Iterable, Mapping
from typing import Any, Optional

from pydantic import ValidationError

from ..models import AttributionBucket, AttributionReport, NormalizedRecord
from ..utils.arn_utils import UNKNOWN_REGION
from .normalization_service import NormalizationService

logger = logging.getLogger(__name__)


def _percentage(part: float, total: float) -> float:
    return (part / total * 100) if total > 0 else 0.0


def _accumulate(breakdown: dict[str, dict[str, float]], category: str, cost: float) -> None:
    current = breakdown.setdefault(category, {"cost": 0.0, "instances": 0})
    current["cost"] += cost
    current["instances"] += 1


def _to_buckets(breakdown: dict[str, dict[str, float]], total_cost: float) -> list[AttributionBucket]:
    return [
        AttributionBucket(
            category=category,
            cost=data["cost"],
            instance_count=int(data["instances"]),
            percentage=_percentage(data["cost"], total_cost),
        )
        for category, data in breakdown.items()
    ]


class AttributionService:
    """
    Service for attributing cloud spend to organizational dimensions.

    Groups records by team, project, environment, instance type and region
    and reports how much of the total spend is traceable to at least one
    tag-based dimension. Region is structural and does not count towards
    the attribution rate.
    """

    def __init__(self, normalization_service: Optional[NormalizationService] = None):
        """
        Initialize attribution service.

        Args:
            normalization_service: Normalizer used by aggregate_raw
        """
        self.normalization_service = normalization_service or NormalizationService()

    def aggregate(self, records: Iterable[Any], dropped_count: int = 0) -> AttributionReport:
        """
        Build an attribution report in a single pass over the records.

        Records may be NormalizedRecord instances or mappings that validate
        as one. Anything else is dropped and counted rather than failing the
        whole aggregation.

        Args:
            records: Snapshot of records to aggregate
            dropped_count: Records already dropped upstream, added to the
                report's count

        Returns:
            AttributionReport with totals, attribution rate and per-dimension
            buckets in first-seen category order
        """
        by_team: dict[str, dict[str, float]] = {}
        by_project: dict[str, dict[str, float]] = {}
        by_environment: dict[str, dict[str, float]] = {}
        by_instance_type: dict[str, dict[str, float]] = {}
        by_region: dict[str, dict[str, float]] = {}

        total_cost = 0.0
        attributed_cost = 0.0
        untagged_count = 0
        dropped = dropped_count

        for item in records:
            record = self._coerce(item)
            if record is None:
                dropped += 1
                continue

            cost = record.cost
            if not math.isfinite(total_cost + cost):
                logger.warning(f"Skipping record {record.id}: cost {cost} overflows the snapshot total")
                dropped += 1
                continue
            total_cost += cost

            has_attribution = False
            for breakdown, value in (
                (by_team, record.team),
                (by_project, record.project),
                (by_environment, record.environment),
            ):
                if value is not None:
                    _accumulate(breakdown, value, cost)
                    has_attribution = True

            if record.instance_type is not None:
                _accumulate(by_instance_type, record.instance_type, cost)

            _accumulate(by_region, record.region or UNKNOWN_REGION, cost)

            if has_attribution:
                attributed_cost += cost
            else:
                untagged_count += 1

        if dropped > dropped_count:
            logger.warning(f"Dropped {dropped - dropped_count} malformed records during aggregation")

        attribution_rate = _percentage(attributed_cost, total_cost)
        logger.info(
            f"Attributed ${attributed_cost:.2f} of ${total_cost:.2f} ({attribution_rate:.1f}%)"
        )

        return AttributionReport(
            total_cost=total_cost,
            attributed_cost=attributed_cost,
            unaccounted_cost=total_cost - attributed_cost,
            attribution_rate=attribution_rate,
            by_team=_to_buckets(by_team, total_cost),
            by_project=_to_buckets(by_project, total_cost),
            by_environment=_to_buckets(by_environment, total_cost),
            by_instance_type=_to_buckets(by_instance_type, total_cost),
            by_region=_to_buckets(by_region, total_cost),
            untagged_instance_count=untagged_count,
            dropped_record_count=dropped,
        )

    def aggregate_raw(self, raw_resources: Iterable[Any]) -> AttributionReport:
        """
        Normalize raw resource payloads and aggregate the result.

        Args:
            raw_resources: Resource descriptions as delivered by the collector

        Returns:
            AttributionReport whose dropped count includes normalization drops
        """
        result = self.normalization_service.normalize_many(raw_resources)
        return self.aggregate(result.records, dropped_count=result.dropped_count)

    def _coerce(self, item: Any) -> Optional[NormalizedRecord]:
        if isinstance(item, NormalizedRecord):
            return item
        if isinstance(item, Mapping):
            try:
                return NormalizedRecord.model_validate(item)
            except ValidationError as e:
                logger.warning(f"Skipping malformed record: {e.error_count()} validation errors")
                return None
        logger.warning(f"Skipping record of unsupported type {type(item).__name__}")
        return None

"""Utility modules for the cost attribution dashboard engine."""

from .arn_utils import get_region_from_arn, parse_arn, region_from_availability_zone
from .instance_category import categorize
from .logging_config import CloudWatchHandler, configure_logging

__all__ = [
    "get_region_from_arn",
    "parse_arn",
    "region_from_availability_zone",
    "categorize",
    "CloudWatchHandler",
    "configure_logging",
]

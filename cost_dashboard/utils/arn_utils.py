# Copyright (c) 2025-2026 OptimNow. All Rights Reserved.
# Licensed under the Apache License, Version 2.0.
# See LICENSE file in the project root for full license information.

"""ARN and location parsing helpers used to derive resource identity and region."""

import re
from typing import Optional

# Supports empty region/account fields and resources with colons in their identifiers
ARN_PATTERN = re.compile(r"^arn:aws[a-z-]*:[a-z0-9-]+:[a-z0-9-]*:[0-9]*:.+")

# e.g. us-east-1a -> us-east-1, us-gov-west-1b -> us-gov-west-1
AVAILABILITY_ZONE_PATTERN = re.compile(r"^([a-z]{2}(?:-[a-z]+)+-\d+)[a-z]$")

UNKNOWN_REGION = "unknown"


def is_valid_arn(arn: Optional[str]) -> bool:
    """
    Validate if a string is a valid AWS ARN format.

    Args:
        arn: String to validate

    Returns:
        True if valid ARN format, False otherwise
    """
    if not arn or not isinstance(arn, str):
        return False

    return bool(ARN_PATTERN.match(arn))


def parse_arn(arn: str) -> dict[str, str]:
    """
    Parse an AWS ARN into its components.

    ARN format: arn:partition:service:region:account:resource

    Args:
        arn: AWS ARN string

    Returns:
        Dictionary with partition, service, region, account, resource and
        resource_id. Region and account may be empty strings.

    Raises:
        ValueError: If ARN format is invalid

    Example:
        >>> parse_arn("arn:aws:ec2:us-east-1:123456789012:instance/i-abc123")["resource_id"]
        'i-abc123'
    """
    if not is_valid_arn(arn):
        raise ValueError(f"Invalid ARN format: {arn}")

    parts = arn.split(":")
    resource = ":".join(parts[5:])

    return {
        "partition": parts[1],
        "service": parts[2],
        "region": parts[3],
        "account": parts[4],
        "resource": resource,
        "resource_id": extract_resource_id(resource),
    }


def extract_resource_id(resource: str) -> str:
    """
    Extract the resource ID from the resource part of an ARN.

    Handles ``type/id``, ``type/subtype/id``, ``type:id`` and bare ids.

    Example:
        >>> extract_resource_id("instance/i-1234567890abcdef0")
        'i-1234567890abcdef0'
        >>> extract_resource_id("function:my-function")
        'my-function'
    """
    if "/" in resource:
        return resource.split("/")[-1]
    if ":" in resource:
        return resource.split(":")[-1]
    return resource


def get_region_from_arn(arn: Optional[str]) -> str:
    """
    Extract the region segment of an ARN.

    Returns:
        The region, or "unknown" for global resources and malformed ARNs
    """
    if not arn:
        return UNKNOWN_REGION
    try:
        return parse_arn(arn)["region"] or UNKNOWN_REGION
    except ValueError:
        return UNKNOWN_REGION


def region_from_availability_zone(zone: Optional[str]) -> Optional[str]:
    """Strip the zone letter from an availability zone name."""
    if not zone:
        return None
    match = AVAILABILITY_ZONE_PATTERN.match(zone.strip().lower())
    return match.group(1) if match else None

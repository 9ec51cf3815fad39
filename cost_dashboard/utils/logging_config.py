# Copyright (c) 2025-2026 OptimNow. All Rights Reserved.
# Licensed under the Apache License, Version 2.0.
# See LICENSE file in the project root for full license information.

"""Logging configuration, with optional CloudWatch shipping."""

import logging
import sys
from typing import Optional

import boto3
from botocore.exceptions import ClientError

from ..config import Settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class CloudWatchHandler(logging.Handler):
    """Logging handler that sends records to AWS CloudWatch Logs."""

    def __init__(
        self,
        log_group: str,
        log_stream: str,
        region: str = "us-east-1",
    ):
        """
        Initialize CloudWatch logging handler.

        Args:
            log_group: CloudWatch log group name
            log_stream: CloudWatch log stream name
            region: AWS region for CloudWatch
        """
        super().__init__()
        self.log_group = log_group
        self.log_stream = log_stream
        self.region = region
        self.client = boto3.client("logs", region_name=region)
        self._ensure_log_group_and_stream()

    def _ensure_log_group_and_stream(self) -> None:
        """Create log group and stream if they don't exist."""
        try:
            try:
                self.client.create_log_group(logGroupName=self.log_group)
            except ClientError as e:
                if e.response["Error"]["Code"] != "ResourceAlreadyExistsException":
                    raise

            try:
                self.client.create_log_stream(
                    logGroupName=self.log_group,
                    logStreamName=self.log_stream,
                )
            except ClientError as e:
                if e.response["Error"]["Code"] != "ResourceAlreadyExistsException":
                    raise
        except ClientError as e:
            print(f"Failed to setup CloudWatch logging: {e}", file=sys.stderr)

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self.client.put_log_events(
                logGroupName=self.log_group,
                logStreamName=self.log_stream,
                logEvents=[
                    {
                        "message": self.format(record),
                        "timestamp": int(record.created * 1000),
                    }
                ],
            )
        except Exception as e:
            # A logging handler must never raise into the caller
            print(f"Failed to send log to CloudWatch: {e}", file=sys.stderr)


def configure_logging(settings: Settings) -> Optional[CloudWatchHandler]:
    """
    Configure root logging from settings.

    Sets the root level and console format, then attaches a CloudWatch
    handler when ``cloudwatch_enabled`` is set.

    Args:
        settings: Application settings

    Returns:
        The CloudWatch handler that was attached, or None
    """
    logging.basicConfig(level=settings.log_level.upper(), format=LOG_FORMAT)
    logging.getLogger().setLevel(settings.log_level.upper())

    if not settings.cloudwatch_enabled:
        return None

    log_stream = settings.cloudwatch_log_stream or settings.environment
    try:
        handler = CloudWatchHandler(
            log_group=settings.cloudwatch_log_group,
            log_stream=log_stream,
            region=settings.aws_region,
        )
    except Exception as e:
        print(f"Failed to configure CloudWatch logging: {e}", file=sys.stderr)
        return None

    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logging.getLogger().addHandler(handler)
    logging.getLogger(__name__).info(
        f"CloudWatch logging configured: group={settings.cloudwatch_log_group}, stream={log_stream}"
    )
    return handler

"""boto3 client factory."""

from __future__ import annotations

from typing import Any, Optional

import boto3
from botocore.config import Config as BotoConfig

DEFAULT_CONNECT_TIMEOUT = 10
DEFAULT_READ_TIMEOUT = 60
DEFAULT_MAX_ATTEMPTS = 3


def create_boto_client(
    service_name: str,
    region_name: Optional[str] = None,
    profile_name: Optional[str] = None,
    connect_timeout: int = DEFAULT_CONNECT_TIMEOUT,
    read_timeout: int = DEFAULT_READ_TIMEOUT,
) -> Any:
    """Create a boto3 client with bounded timeouts.

    A fresh session is created per client, so clients can be built from
    worker threads.

    Args:
        service_name: AWS service name (e.g., "ec2", "elbv2")
        region_name: AWS region (optional, falls back to the profile default)
        profile_name: AWS profile name (optional)
        connect_timeout: Socket connect timeout in seconds
        read_timeout: Socket read timeout in seconds

    Returns:
        boto3 client for the service
    """
    session = boto3.Session(profile_name=profile_name, region_name=region_name)
    config = BotoConfig(
        connect_timeout=connect_timeout,
        read_timeout=read_timeout,
        retries={"max_attempts": DEFAULT_MAX_ATTEMPTS, "mode": "standard"},
    )
    return session.client(service_name, region_name=region_name, config=config)

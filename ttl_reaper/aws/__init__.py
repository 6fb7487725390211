"""AWS provider access for the reaper."""

from __future__ import annotations

from .client import create_boto_client
from .provider import AWSProvider, Provider, ProviderError

__all__ = [
    "AWSProvider",
    "Provider",
    "ProviderError",
    "create_boto_client",
]

"""Expiration evaluation."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional


def is_expired(created_at: datetime, ttl_seconds: int, now: datetime) -> bool:
    """Check whether a resource's TTL has elapsed.

    A negative TTL means no TTL was recorded and the resource never expires.
    The boundary is inclusive: a resource is expired at exactly
    created_at + ttl_seconds.
    """
    if ttl_seconds < 0:
        return False
    return now >= created_at + timedelta(seconds=ttl_seconds)


def expires_at(created_at: Optional[datetime], ttl_seconds: int) -> Optional[datetime]:
    """Expiry time, None when there is no TTL or no creation time."""
    if created_at is None or ttl_seconds < 0:
        return None
    return created_at + timedelta(seconds=ttl_seconds)

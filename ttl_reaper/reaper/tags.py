"""TTL and creation-date tag encoding."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, Optional, Tuple

from ..models.resource import NO_TTL, Tag, TagRole

TTL_TAG_KEY = "ttl"
CREATION_DATE_TAG_KEY = "creationDate"
DEFAULT_TAG_NAME = "ttl"


def encode_ttl_tag(created_at: Optional[datetime], ttl_seconds: int) -> str:
    """Encode a TTL as a tag value.

    The creation time is not part of the value: it comes from the resource's
    own creation attribute, or from the creationDate tag where AWS has none.
    """
    if ttl_seconds < 0:
        raise ValueError(f"TTL must be >= 0, got {ttl_seconds}")
    return str(int(ttl_seconds))


def decode_ttl(value: Optional[str]) -> Tuple[int, bool]:
    """Parse a TTL tag value.

    Returns:
        Tuple of (ttl_seconds, ok). ok is False when the value is not an
        integer, in which case ttl_seconds is NO_TTL.
    """
    if value is None:
        return NO_TTL, False
    try:
        return int(value.strip()), True
    except ValueError:
        return NO_TTL, False


def encode_creation_date(created_at: datetime) -> str:
    """Encode a creation time as Unix epoch seconds."""
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=timezone.utc)
    return str(int(created_at.timestamp()))


def decode_creation_date(value: Optional[str]) -> Optional[datetime]:
    """Parse a creationDate tag value, None if missing or malformed."""
    if not value:
        return None
    try:
        return datetime.fromtimestamp(int(value.strip()), tz=timezone.utc)
    except (ValueError, OverflowError, OSError):
        return None


def build_ttl_tags(
    ttl_seconds: int,
    created_at: Optional[datetime] = None,
    tag_name: str = DEFAULT_TAG_NAME,
) -> Dict[str, str]:
    """Build the tag set applied to a resource managed by the reaper.

    Args:
        ttl_seconds: TTL to record
        created_at: Creation time to record for resources without a native
            creation attribute (optional)
        tag_name: Marker tag key; when it differs from the TTL key the marker
            is added with value "1"

    Returns:
        Tag key to value mapping
    """
    tags = {TTL_TAG_KEY: encode_ttl_tag(created_at, ttl_seconds)}
    if tag_name != TTL_TAG_KEY:
        tags[tag_name] = "1"
    if created_at is not None:
        tags[CREATION_DATE_TAG_KEY] = encode_creation_date(created_at)
    return tags


def find_ttl_value(tags: Dict[str, str], tag_name: str = DEFAULT_TAG_NAME) -> Optional[str]:
    """Return the TTL tag value (key matched case-insensitively), None if absent."""
    for key, value in tags.items():
        if Tag(key, value).role(tag_name, ttl_key=TTL_TAG_KEY) == TagRole.TTL:
            return value
    return None

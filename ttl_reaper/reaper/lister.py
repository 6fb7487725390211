"""Tagged resource discovery."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, List, Optional, Tuple

from ..aws.provider import Provider, ProviderError
from ..models.resource import (
    LOAD_BALANCER_TYPE,
    NO_TTL,
    VPC_TYPE,
    LoadBalancer,
    NetworkContainer,
    TaggedResource,
)
from .tags import CREATION_DATE_TAG_KEY, decode_creation_date, decode_ttl, find_ttl_value

logger = logging.getLogger(__name__)


class ResourceLister:
    """Lists resources of a type and turns them into tagged resource records.

    Attributes:
        provider: Provider used for listing and tag lookups
        skipped: (resource type, resource ID, reason) of every resource the
            last list() call excluded because of its tags
    """

    RESOURCE_CLASSES = {
        VPC_TYPE: NetworkContainer,
        LOAD_BALANCER_TYPE: LoadBalancer,
    }

    def __init__(self, provider: Provider) -> None:
        self.provider = provider
        self.skipped: List[Tuple[str, str, str]] = []

    def list(
        self,
        resource_type: str,
        tag_key: Optional[str] = None,
        filters: Optional[Dict[str, List[str]]] = None,
    ) -> List[TaggedResource]:
        """List resources of a type, optionally only those carrying a tag key.

        Args:
            resource_type: AWS resource type (VPC or load balancer)
            tag_key: Only keep resources carrying this tag key (None for all)
            filters: Extra provider filters (optional)

        Returns:
            Tagged resource records, empty if nothing matched

        Raises:
            ProviderError: If the listing call itself fails
            ValueError: If the resource type is not supported
        """
        self._check_type(resource_type)
        self.skipped = []

        query = dict(filters or {})
        if tag_key:
            query.setdefault("tag-key", [tag_key])

        resources: List[TaggedResource] = []
        for item, tags in self._tagged_items(resource_type, query or None):
            if tag_key and tag_key not in tags:
                continue

            resource = self._build(resource_type, item, tags, tag_key)
            if resource is not None:
                resources.append(resource)

        logger.debug(f"Found {len(resources)} {resource_type} in {self.provider.region}")
        return resources

    def list_with_key_contains(self, resource_type: str, needle: str) -> List[TaggedResource]:
        """List resources having a tag whose key or value contains a string.

        Matching is done on the raw tags, so resources are returned whatever
        their TTL tag holds.
        """
        self._check_type(resource_type)
        self.skipped = []

        resources: List[TaggedResource] = []
        for item, tags in self._tagged_items(resource_type, None):
            if not any(needle in key or needle in value for key, value in tags.items()):
                continue
            ttl, _ = decode_ttl(find_ttl_value(tags))
            resources.append(self._record(resource_type, item, tags, ttl, item.get("created_at")))
        return resources

    def _check_type(self, resource_type: str) -> None:
        if resource_type not in self.RESOURCE_CLASSES:
            raise ValueError(f"Unsupported resource type: {resource_type}")

    def _tagged_items(
        self, resource_type: str, query: Optional[Dict[str, List[str]]]
    ) -> Iterator[Tuple[Dict[str, Any], Dict[str, str]]]:
        """Yield (item, tags) pairs, fetching tags the listing did not carry."""
        items = self.provider.list_resources(resource_type, query)
        if not items:
            logger.debug(f"No {resource_type} found in {self.provider.region}")
            return

        for item in items:
            tags = item.get("tags")
            if tags is None:
                try:
                    tags = self.provider.describe_tags(item["resource_id"])
                except ProviderError as e:
                    logger.error(f"Error while getting tags from {item.get('name')} in {self.provider.region}: {e}")
                    self.skipped.append((resource_type, item["resource_id"], f"tags unavailable: {e}"))
                    continue
            yield item, tags

    def _build(
        self,
        resource_type: str,
        item: Dict[str, Any],
        tags: Dict[str, str],
        tag_key: Optional[str],
    ) -> Optional[TaggedResource]:
        """Build a record, None when its tags cannot be used this pass."""
        name = item.get("name") or item["resource_id"]
        region = self.provider.region

        ttl = NO_TTL
        ttl_value = find_ttl_value(tags)
        if ttl_value is not None:
            ttl, ok = decode_ttl(ttl_value)
            if not ok:
                logger.warning(
                    f"Bad ttl value ({ttl_value}) on {resource_type} {name} in {region}, it should be a number"
                )
                self.skipped.append((resource_type, item["resource_id"], f"bad ttl value ({ttl_value})"))
                return None

        created_at = item.get("created_at") or decode_creation_date(tags.get(CREATION_DATE_TAG_KEY))
        if created_at is None and ttl >= 0:
            logger.warning(f"No usable {CREATION_DATE_TAG_KEY} tag on {resource_type} {name} in {region}, skipping")
            self.skipped.append((resource_type, item["resource_id"], f"no usable {CREATION_DATE_TAG_KEY} tag"))
            return None

        return self._record(resource_type, item, tags, ttl, created_at, tag=tags.get(tag_key) if tag_key else None)

    def _record(
        self,
        resource_type: str,
        item: Dict[str, Any],
        tags: Dict[str, str],
        ttl: int,
        created_at: Optional[datetime],
        tag: Optional[str] = None,
    ) -> TaggedResource:
        if created_at is not None and created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=timezone.utc)

        resource_class = self.RESOURCE_CLASSES[resource_type]
        return resource_class(
            resource_id=item["resource_id"],
            name=item.get("name") or item["resource_id"],
            status=item.get("status", "unknown"),
            created_at=created_at,
            ttl=ttl,
            tag=tag,
            tags=dict(tags),
            region=self.provider.region,
        )

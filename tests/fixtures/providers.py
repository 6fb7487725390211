"""In-memory provider used to exercise the reaper without AWS."""

from __future__ import annotations

import threading
from collections import defaultdict
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple

from ttl_reaper.aws.provider import Provider, ProviderError
from ttl_reaper.models.resource import LOAD_BALANCER_TYPE, VPC_TYPE, SubResourceCategory

# Reference creation time used across the suites
T0 = datetime(2025, 1, 15, 10, 0, 0, tzinfo=timezone.utc)


class FakeProvider(Provider):
    """Provider storing resources in memory and recording every call.

    Failures are injected per resource type (listing) or per resource ID
    (describe_tags, delete_resource).
    """

    def __init__(self, region: str = "us-east-1") -> None:
        self._region = region
        self.resources: Dict[str, List[Dict[str, Any]]] = defaultdict(list)
        self.tags: Dict[str, Dict[str, str]] = {}
        self.list_errors: Dict[str, ProviderError] = {}
        self.describe_errors: Dict[str, ProviderError] = {}
        self.delete_errors: Dict[str, ProviderError] = {}
        self.add_tags_error: Optional[ProviderError] = None
        self.list_calls: List[Tuple[str, Optional[Dict[str, List[str]]]]] = []
        self.deleted: List[Tuple[str, str]] = []
        self.added_tags: List[Tuple[List[str], Dict[str, str]]] = []
        self._lock = threading.Lock()

    @property
    def region(self) -> str:
        return self._region

    # Seeding helpers

    def add_vpc(
        self,
        vpc_id: str,
        tags: Optional[Dict[str, str]] = None,
        status: str = "available",
        security_groups: Iterable[str] = (),
        internet_gateways: Iterable[str] = (),
        subnets: Iterable[str] = (),
        route_tables: Iterable[str] = (),
    ) -> None:
        self.resources[VPC_TYPE].append(self._item(vpc_id, status=status, tags=tags or {}))
        members = {
            SubResourceCategory.SECURITY_GROUP: security_groups,
            SubResourceCategory.INTERNET_GATEWAY: internet_gateways,
            SubResourceCategory.SUBNET: subnets,
            SubResourceCategory.ROUTE_TABLE: route_tables,
        }
        for category, ids in members.items():
            for resource_id in ids:
                self.add_sub_resource(category, resource_id, vpc_id)

    def add_sub_resource(
        self,
        category: SubResourceCategory,
        resource_id: str,
        vpc_id: str,
        default: bool = False,
    ) -> None:
        self.resources[category.resource_type].append(
            self._item(resource_id, tags={}, parent_id=vpc_id, default=default)
        )

    def add_load_balancer(
        self,
        arn: str,
        name: str,
        created_at: datetime,
        tags: Optional[Dict[str, str]] = None,
        status: str = "active",
    ) -> None:
        # ELBv2 listings carry no tags, they come from describe_tags
        self.resources[LOAD_BALANCER_TYPE].append(
            self._item(arn, name=name, status=status, created_at=created_at, tags=None)
        )
        self.tags[arn] = dict(tags or {})

    @staticmethod
    def _item(
        resource_id: str,
        name: Optional[str] = None,
        status: str = "available",
        created_at: Optional[datetime] = None,
        tags: Optional[Dict[str, str]] = None,
        parent_id: Optional[str] = None,
        default: bool = False,
    ) -> Dict[str, Any]:
        return {
            "resource_id": resource_id,
            "name": name or resource_id,
            "status": status,
            "created_at": created_at,
            "tags": tags,
            "parent_id": parent_id,
            "default": default,
        }

    # Provider interface

    def list_resources(
        self, resource_type: str, filters: Optional[Dict[str, List[str]]] = None
    ) -> List[Dict[str, Any]]:
        with self._lock:
            self.list_calls.append((resource_type, filters))
        if resource_type in self.list_errors:
            raise self.list_errors[resource_type]

        items = [dict(item) for item in self.resources.get(resource_type, [])]
        for name, values in (filters or {}).items():
            items = [item for item in items if self._matches(item, name, values)]
        return items

    @staticmethod
    def _matches(item: Dict[str, Any], name: str, values: List[str]) -> bool:
        tags = item.get("tags")
        if name == "vpc-id":
            return item.get("parent_id") in values
        # Listings without tags cannot be filtered server side
        if tags is None:
            return True
        if name == "tag-key":
            return any(key in tags for key in values)
        if name.startswith("tag:"):
            return tags.get(name[len("tag:") :]) in values
        return True

    def describe_tags(self, resource_id: str) -> Dict[str, str]:
        if resource_id in self.describe_errors:
            raise self.describe_errors[resource_id]
        return dict(self.tags.get(resource_id, {}))

    def add_tags(self, resource_ids: List[str], tags: Dict[str, str]) -> None:
        if self.add_tags_error is not None:
            raise self.add_tags_error
        self.added_tags.append((list(resource_ids), dict(tags)))

    def delete_resource(self, resource_type: str, resource_id: str, parent_id: Optional[str] = None) -> None:
        self.deleted.append((resource_type, resource_id))
        if resource_id in self.delete_errors:
            raise self.delete_errors[resource_id]

    @property
    def deleted_ids(self) -> List[str]:
        return [resource_id for _, resource_id in self.deleted]

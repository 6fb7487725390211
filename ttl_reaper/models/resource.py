"""Tagged resource models built fresh on every discovery pass.

Nothing here is persisted: the TTL, marker and creation-date tags on the AWS
resources themselves are the only state carried between passes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

# TTL value used when a resource carries no TTL tag; never expires
NO_TTL = -1

VPC_TYPE = "AWS::EC2::VPC"
LOAD_BALANCER_TYPE = "AWS::ElasticLoadBalancingV2::LoadBalancer"

VPC_AVAILABLE = "available"


class TagRole(Enum):
    """Role a tag plays for the reaper."""

    MARKER = "marker"
    TTL = "ttl"
    PASS_THROUGH = "pass-through"


@dataclass(frozen=True)
class Tag:
    """Provider tag (key/value pair)."""

    key: str
    value: str

    def role(self, tag_name: str, ttl_key: str = "ttl") -> TagRole:
        """Classify this tag.

        When the marker and TTL keys coincide (the default), the tag is
        reported as a TTL tag since its value carries the TTL.
        """
        if self.key.lower() == ttl_key.lower():
            return TagRole.TTL
        if self.key == tag_name:
            return TagRole.MARKER
        return TagRole.PASS_THROUGH


def tags_to_dict(tag_list: Optional[List[Dict[str, Any]]]) -> Dict[str, str]:
    """Convert AWS [{"Key": ..., "Value": ...}] tags to a dict."""
    return {tag["Key"]: tag.get("Value", "") for tag in tag_list or []}


class SubResourceCategory(Enum):
    """Sub-resource categories owned by a VPC, in deletion order."""

    SECURITY_GROUP = "AWS::EC2::SecurityGroup"
    INTERNET_GATEWAY = "AWS::EC2::InternetGateway"
    SUBNET = "AWS::EC2::Subnet"
    ROUTE_TABLE = "AWS::EC2::RouteTable"

    @property
    def resource_type(self) -> str:
        return self.value

    @property
    def field_name(self) -> str:
        """NetworkContainer attribute holding this category's members."""
        return _CATEGORY_FIELDS[self]

    @property
    def deletion_tier(self) -> int:
        """1-based position in the deletion order."""
        return list(SubResourceCategory).index(self) + 1


_CATEGORY_FIELDS = {
    SubResourceCategory.SECURITY_GROUP: "security_groups",
    SubResourceCategory.INTERNET_GATEWAY: "internet_gateways",
    SubResourceCategory.SUBNET: "subnets",
    SubResourceCategory.ROUTE_TABLE: "route_tables",
}

# VPC itself goes after every sub-resource category
CONTAINER_DELETION_TIER = len(SubResourceCategory) + 1


@dataclass
class SubResourceRef:
    """Reference to a resource that only exists inside a VPC."""

    resource_id: str
    parent_id: str
    category: SubResourceCategory

    @property
    def resource_type(self) -> str:
        return self.category.resource_type


@dataclass
class TaggedResource:
    """A resource discovered through its reaper tags.

    Attributes:
        resource_id: Opaque provider identifier (VPC ID, load balancer ARN)
        name: Display name
        status: Provider lifecycle status string
        created_at: Creation time (timezone-aware), None if unknown
        ttl: TTL in seconds, NO_TTL when no TTL tag was found
        tag: Raw value of the marker tag matched
        tags: Copy of every tag on the resource, for diagnostics
        region: AWS region the resource lives in
    """

    resource_id: str
    name: str
    status: str
    created_at: Optional[datetime] = None
    ttl: int = NO_TTL
    tag: Optional[str] = None
    tags: Dict[str, str] = field(default_factory=dict)
    region: str = ""

    resource_type = ""

    @property
    def has_ttl(self) -> bool:
        return self.ttl >= 0


@dataclass
class LoadBalancer(TaggedResource):
    """Elastic Load Balancing v2 load balancer (standalone resource)."""

    resource_type = LOAD_BALANCER_TYPE


@dataclass
class NetworkContainer(TaggedResource):
    """VPC together with the sub-resources that must be deleted before it.

    Each sub-resource list is written by exactly one resolver task.
    """

    security_groups: List[SubResourceRef] = field(default_factory=list)
    internet_gateways: List[SubResourceRef] = field(default_factory=list)
    subnets: List[SubResourceRef] = field(default_factory=list)
    route_tables: List[SubResourceRef] = field(default_factory=list)
    failed_categories: List[SubResourceCategory] = field(default_factory=list)

    resource_type = VPC_TYPE

    @property
    def is_available(self) -> bool:
        return self.status == VPC_AVAILABLE

    def members(self, category: SubResourceCategory) -> List[SubResourceRef]:
        """Sub-resources of one category."""
        return getattr(self, category.field_name)

    def sub_resources(self) -> List[SubResourceRef]:
        """All sub-resources in deletion order."""
        refs: List[SubResourceRef] = []
        for category in SubResourceCategory:
            refs.extend(self.members(category))
        return refs

"""Tagging of resources the reaper should manage."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional, Sequence

from ..aws.provider import Provider, ProviderError
from ..models.resource import VPC_TYPE, NetworkContainer, TaggedResource
from .resolver import SubResourceResolver
from .tags import DEFAULT_TAG_NAME, build_ttl_tags

logger = logging.getLogger(__name__)

CLUSTER_NAME_TAG_KEY = "ClusterName"


class ResourceTagger:
    """Applies TTL, marker and creation-date tags.

    Tagging failures are raised to the caller: an untagged resource would
    silently escape every future pass.

    Attributes:
        provider: Provider used for listing and tagging
        tag_name: Marker tag key
    """

    def __init__(self, provider: Provider, tag_name: str = DEFAULT_TAG_NAME) -> None:
        self.provider = provider
        self.tag_name = tag_name
        self.resolver = SubResourceResolver(provider)

    def tag_resource(
        self,
        resource_type: str,
        resource_id: str,
        ttl: int,
        created_at: Optional[datetime] = None,
    ) -> None:
        """Tag a newly observed resource with its TTL.

        Args:
            resource_type: AWS resource type, used for logging
            resource_id: Resource identifier (ID or ARN)
            ttl: TTL in seconds
            created_at: Creation time, for resources without a native one
        """
        tags = build_ttl_tags(ttl, created_at=created_at, tag_name=self.tag_name)
        self.provider.add_tags([resource_id], tags)
        logger.info(f"Tagged {resource_type} {resource_id} in {self.provider.region} with ttl={ttl}")

    def tag_load_balancers_for_deletion(self, load_balancers: Sequence[TaggedResource]) -> None:
        """Add the marker tag to every given load balancer in one call."""
        if not load_balancers:
            return

        arns = [load_balancer.resource_id for load_balancer in load_balancers]
        self.provider.add_tags(arns, {self.tag_name: "1"})
        logger.info(f"Tagged {len(arns)} load balancer(s) in {self.provider.region} for deletion")

    def find_cluster_vpcs(self, cluster_name: str) -> List[NetworkContainer]:
        """VPCs tagged with ClusterName=<cluster_name>."""
        items = self.provider.list_resources(VPC_TYPE, {f"tag:{CLUSTER_NAME_TAG_KEY}": [cluster_name]})
        return [
            NetworkContainer(
                resource_id=item["resource_id"],
                name=item.get("name") or item["resource_id"],
                status=item.get("status", "unknown"),
                tags=dict(item.get("tags") or {}),
                region=self.provider.region,
            )
            for item in items
        ]

    def tag_vpcs_for_deletion(self, cluster_name: str, created_at: datetime, ttl: int) -> List[str]:
        """Tag a cluster's VPCs and all of their sub-resources.

        Args:
            cluster_name: Value of the ClusterName tag identifying the VPCs
            created_at: Cluster creation time, recorded as creationDate
            ttl: Cluster TTL in seconds

        Returns:
            IDs of every resource tagged

        Raises:
            ProviderError: If listing or tagging fails, or a sub-resource
                category of one of the VPCs could not be listed (nothing is
                tagged then)
        """
        containers = self.find_cluster_vpcs(cluster_name)
        if not containers:
            logger.info(f"No VPC found for cluster {cluster_name} in {self.provider.region}")
            return []

        resource_ids: List[str] = []
        for container in containers:
            self.resolver.resolve(container)
            if container.failed_categories:
                names = ", ".join(category.resource_type for category in container.failed_categories)
                raise ProviderError(
                    f"Could not list {names} of VPC {container.resource_id} in {self.provider.region}, "
                    f"cluster {cluster_name} left untagged",
                    error_code="IncompleteDiscovery",
                )
            resource_ids.append(container.resource_id)
            resource_ids.extend(ref.resource_id for ref in container.sub_resources())

        tags = build_ttl_tags(ttl, created_at=created_at, tag_name=self.tag_name)
        self.provider.add_tags(resource_ids, tags)

        logger.info(
            f"Tagged {len(resource_ids)} resource(s) of cluster {cluster_name} in {self.provider.region} "
            f"with ttl={ttl}"
        )
        return resource_ids

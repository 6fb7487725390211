"""Concurrent discovery of the sub-resources owned by a VPC."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, wait
from typing import List

from ..aws.provider import Provider
from ..models.resource import NetworkContainer, SubResourceCategory, SubResourceRef

logger = logging.getLogger(__name__)


class SubResourceResolver:
    """Populates a NetworkContainer with its security groups, internet
    gateways, subnets and route tables.

    The four categories are independent provider calls, so they are issued
    in parallel and joined before the container is returned. Each task
    writes only its own category field of the container.

    Attributes:
        provider: Provider used for the category listings
    """

    def __init__(self, provider: Provider) -> None:
        self.provider = provider

    def resolve(self, container: NetworkContainer) -> NetworkContainer:
        """Discover every sub-resource category of a container.

        A category whose listing fails is logged, left empty and recorded in
        container.failed_categories; the other categories are unaffected.

        Args:
            container: VPC record to populate

        Returns:
            The same container, populated
        """
        categories = list(SubResourceCategory)
        with ThreadPoolExecutor(max_workers=len(categories)) as executor:
            futures = {
                executor.submit(self._resolve_category, container, category): category for category in categories
            }
            wait(futures)

        for future, category in futures.items():
            error = future.exception()
            if error is not None:
                logger.error(
                    f"Error while listing {category.resource_type} of VPC {container.resource_id} "
                    f"in {self.provider.region}: {error}"
                )
                container.failed_categories.append(category)

        logger.debug(
            f"VPC {container.resource_id}: {len(container.security_groups)} security group(s), "
            f"{len(container.internet_gateways)} internet gateway(s), {len(container.subnets)} subnet(s), "
            f"{len(container.route_tables)} route table(s)"
        )
        return container

    def _resolve_category(self, container: NetworkContainer, category: SubResourceCategory) -> None:
        items = self.provider.list_resources(category.resource_type, {"vpc-id": [container.resource_id]})

        refs: List[SubResourceRef] = []
        for item in items:
            # Default security group and main route table go away with the VPC
            if item.get("default"):
                continue
            refs.append(
                SubResourceRef(
                    resource_id=item["resource_id"],
                    parent_id=container.resource_id,
                    category=category,
                )
            )

        setattr(container, category.field_name, refs)

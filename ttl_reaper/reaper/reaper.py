"""Reaper for expired resources.

Main orchestrator of a pass: discover tagged resources, resolve VPC
sub-resources, evaluate TTLs and delete expired resources in dependency
order. Supports dry-run and execute modes.
"""

from __future__ import annotations

import logging
import uuid
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Callable, List, Optional, Sequence

from ..aws.provider import Provider, ProviderError
from ..models.deletion_record import DeletionRecord, DeletionStatus
from ..models.reap_operation import OperationMode, ReapOperation
from ..models.resource import (
    CONTAINER_DELETION_TIER,
    LOAD_BALANCER_TYPE,
    VPC_TYPE,
    NetworkContainer,
    SubResourceCategory,
    TaggedResource,
)
from .expiration import expires_at, is_expired
from .lister import ResourceLister
from .resolver import SubResourceResolver
from .tags import DEFAULT_TAG_NAME

logger = logging.getLogger(__name__)

FAMILY_VPC = "vpc"
FAMILY_LOAD_BALANCER = "load-balancer"
FAMILIES = (FAMILY_VPC, FAMILY_LOAD_BALANCER)

DEFAULT_MAX_WORKERS = 10


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Reaper:
    """Reaper orchestrator.

    Runs one pass per call; there is no retry loop. Anything that could not
    be deleted stays tagged and is picked up again by the next pass.

    Attributes:
        provider: Provider used for every AWS call
        tag_name: Marker tag key identifying resources managed by the reaper
        dry_run: When True, no delete call is issued
        clock: Callable returning the current (timezone-aware) time
        max_workers: Upper bound on VPCs resolved concurrently
        lister: Tagged resource lister
        resolver: VPC sub-resource resolver
    """

    def __init__(
        self,
        provider: Provider,
        tag_name: str = DEFAULT_TAG_NAME,
        dry_run: bool = False,
        clock: Optional[Callable[[], datetime]] = None,
        max_workers: int = DEFAULT_MAX_WORKERS,
    ) -> None:
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")

        self.provider = provider
        self.tag_name = tag_name
        self.dry_run = dry_run
        self.clock = clock or _utcnow
        self.max_workers = max_workers
        self.lister = ResourceLister(provider)
        self.resolver = SubResourceResolver(provider)

    def run(self, families: Optional[Sequence[str]] = None) -> List[ReapOperation]:
        """Reap several resource families in sequence.

        A family whose listing fails is reported as a failed operation; the
        remaining families still run.

        Args:
            families: Families to reap (default: all)

        Returns:
            One operation per family

        Raises:
            ValueError: If a family is unknown
        """
        handlers = {
            FAMILY_VPC: self.reap_vpcs,
            FAMILY_LOAD_BALANCER: self.reap_load_balancers,
        }
        selected = list(families or FAMILIES)
        for family in selected:
            if family not in handlers:
                raise ValueError(f"Unknown resource family: {family}")

        operations = []
        for family in selected:
            try:
                operations.append(handlers[family]())
            except ProviderError as e:
                logger.error(f"Listing {family} in {self.provider.region} failed: {e.message}")
                operation = self._new_operation(family)
                operation.error_code = e.error_code
                operation.error_message = e.message
                operations.append(self._finish(operation))
        return operations

    def reap_vpcs(self) -> ReapOperation:
        """Delete expired VPCs together with their sub-resources.

        Returns:
            ReapOperation describing the pass

        Raises:
            ProviderError: If the VPC listing fails
        """
        operation = self._new_operation(FAMILY_VPC)

        containers = self.lister.list(VPC_TYPE, tag_key=self.tag_name)
        operation.discovered_count = len(containers)
        self._record_skipped(operation)

        ready = []
        for container in containers:
            reason = self._not_ready_reason(container)
            if reason:
                self._skip(operation, VPC_TYPE, container.resource_id, reason)
            else:
                ready.append(container)
        logger.debug(f"Found {len(ready)} VPC(s) in ready status with {self.tag_name} tag in {self.provider.region}")

        self._resolve_all(ready)

        now = self.clock()
        for container in ready:
            if container.failed_categories:
                operation.unresolved[container.resource_id] = list(container.failed_categories)
            if not self._check_expired(container, now):
                continue
            operation.expired.append(container)
            self._delete_container(container, operation)

        return self._finish(operation)

    def reap_load_balancers(self) -> ReapOperation:
        """Delete expired load balancers.

        Returns:
            ReapOperation describing the pass

        Raises:
            ProviderError: If the load balancer listing fails
        """
        operation = self._new_operation(FAMILY_LOAD_BALANCER)

        load_balancers = self.lister.list(LOAD_BALANCER_TYPE, tag_key=self.tag_name)
        operation.discovered_count = len(load_balancers)
        self._record_skipped(operation)

        now = self.clock()
        for load_balancer in load_balancers:
            if not load_balancer.tags:
                self._skip(operation, LOAD_BALANCER_TYPE, load_balancer.resource_id, "no tags")
                continue
            if not self._check_expired(load_balancer, now):
                continue
            operation.expired.append(load_balancer)
            self._delete(operation, LOAD_BALANCER_TYPE, load_balancer.resource_id, deletion_tier=1)

        return self._finish(operation)

    def _new_operation(self, family: str) -> ReapOperation:
        return ReapOperation(
            operation_id=f"op_{uuid.uuid4()}",
            family=family,
            region=self.provider.region,
            mode=OperationMode.DRY_RUN if self.dry_run else OperationMode.EXECUTE,
            timestamp=self.clock(),
        )

    def _finish(self, operation: ReapOperation) -> ReapOperation:
        operation.finalize(completed_at=self.clock())
        if operation.error_code is not None:
            return operation

        for vpc_id, categories in operation.unresolved.items():
            logger.warning(
                f"VPC {vpc_id} in {operation.region}: could not list "
                f"{', '.join(category.resource_type for category in categories)}"
            )
        if self.dry_run:
            logger.info(
                f"[dry-run] {operation.family} in {operation.region}: {operation.expired_count} of "
                f"{operation.discovered_count} expired, {operation.planned_count} deletion(s) planned"
            )
        else:
            logger.info(
                f"{operation.family} in {operation.region}: {operation.expired_count} of "
                f"{operation.discovered_count} expired, {operation.succeeded_count} deleted, "
                f"{operation.failed_count} failed, {operation.skipped_count} skipped"
            )
        return operation

    def _not_ready_reason(self, container: NetworkContainer) -> Optional[str]:
        """Why a VPC is not stable or properly tagged, None when it is."""
        if not container.is_available:
            logger.debug(f"VPC {container.resource_id} is {container.status}, skipping")
            return f"status is {container.status}"
        if not container.tags:
            logger.debug(f"VPC {container.resource_id} has no tags, skipping")
            return "no tags"
        if not container.tag:
            logger.warning(
                f"Tag {self.tag_name} was empty on VPC {container.resource_id} in {self.provider.region} "
                f"and it wasn't expected, skipping"
            )
            return f"empty {self.tag_name} tag"
        return None

    def _record_skipped(self, operation: ReapOperation) -> None:
        """Turn the lister's data-quality exclusions into skipped records."""
        for resource_type, resource_id, reason in self.lister.skipped:
            self._skip(operation, resource_type, resource_id, reason)

    def _skip(self, operation: ReapOperation, resource_type: str, resource_id: str, reason: str) -> None:
        operation.add_record(
            DeletionRecord(
                resource_id=resource_id,
                resource_type=resource_type,
                region=self.provider.region,
                status=DeletionStatus.SKIPPED,
                skip_reason=reason,
            )
        )

    def _resolve_all(self, containers: List[NetworkContainer]) -> None:
        if not containers:
            return
        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(containers))) as executor:
            list(executor.map(self.resolver.resolve, containers))

    def _check_expired(self, resource: TaggedResource, now: datetime) -> bool:
        if not resource.has_ttl:
            logger.debug(f"{resource.resource_type} {resource.name} has no ttl, skipping")
            return False

        if not is_expired(resource.created_at, resource.ttl, now):
            logger.debug(
                f"{resource.resource_type} {resource.name} in {self.provider.region} has not yet expired "
                f"(expires at {expires_at(resource.created_at, resource.ttl)})"
            )
            return False

        return True

    def _delete_container(self, container: NetworkContainer, operation: ReapOperation) -> None:
        """Delete a VPC after every one of its sub-resources.

        Each member gets exactly one attempt; failures never stop the
        remaining members or categories.
        """
        for category in SubResourceCategory:
            for ref in container.members(category):
                self._delete(
                    operation,
                    ref.resource_type,
                    ref.resource_id,
                    deletion_tier=category.deletion_tier,
                    parent_id=container.resource_id,
                )

        self._delete(operation, VPC_TYPE, container.resource_id, deletion_tier=CONTAINER_DELETION_TIER)

    def _delete(
        self,
        operation: ReapOperation,
        resource_type: str,
        resource_id: str,
        deletion_tier: int,
        parent_id: Optional[str] = None,
    ) -> DeletionRecord:
        """Delete one resource and record the outcome."""
        region = self.provider.region
        record = DeletionRecord(
            resource_id=resource_id,
            resource_type=resource_type,
            region=region,
            status=DeletionStatus.DRY_RUN,
            parent_id=parent_id,
            deletion_tier=deletion_tier,
        )

        if self.dry_run:
            logger.info(f"[dry-run] Would delete {resource_type} {resource_id} in {region}")
            operation.add_record(record)
            return record

        try:
            self.provider.delete_resource(resource_type, resource_id, parent_id=parent_id)
        except ProviderError as e:
            if e.is_dependency_violation:
                # Dependencies not yet removed, the next pass retries
                logger.warning(f"Can't delete {resource_type} {resource_id} in {region} yet: {e.message}")
            else:
                logger.error(f"Deletion of {resource_type} {resource_id} in {region} failed: {e.message}")
            record.status = DeletionStatus.FAILED
            record.error_code = e.error_code
            record.error_message = e.message
        else:
            logger.info(f"Deleted {resource_type} {resource_id} in {region}")
            record.status = DeletionStatus.SUCCEEDED

        operation.add_record(record)
        return record

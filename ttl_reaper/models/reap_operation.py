"""Reap operation model.

Report of one pass over one resource family.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional

from .deletion_record import DeletionRecord, DeletionStatus
from .resource import SubResourceCategory, TaggedResource


class OperationMode(Enum):
    """Operation execution mode."""

    DRY_RUN = "dry-run"
    EXECUTE = "execute"


class OperationStatus(Enum):
    """Operation outcome."""

    PLANNED = "planned"
    COMPLETED = "completed"
    PARTIAL = "partial"
    FAILED = "failed"


@dataclass
class ReapOperation:
    """Reap operation entity.

    State transitions:
        dry-run → planned
        execute → completed (every deletion succeeded, or nothing to delete)
        execute → partial (some deletions failed)
        execute → failed (every attempted deletion failed)
        any mode → failed (the family listing itself failed)

    Attributes:
        operation_id: Unique identifier for the pass
        family: Resource family reaped ("vpc" or "load-balancer")
        region: AWS region of the provider
        mode: dry-run or execute
        timestamp: When the pass started (UTC)
        discovered_count: Tagged resources found by the listing
        expired: Resources whose TTL had elapsed
        records: Per-resource deletion outcomes
        status: Final status, computed by finalize()
        completed_at: When the pass finished (optional)
        error_code: Error code when the family listing failed (optional)
        error_message: Error message when the family listing failed (optional)
        unresolved: VPC ID to the sub-resource categories that could not be listed
    """

    operation_id: str
    family: str
    region: str
    mode: OperationMode
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    discovered_count: int = 0
    expired: List[TaggedResource] = field(default_factory=list)
    records: List[DeletionRecord] = field(default_factory=list)
    status: OperationStatus = OperationStatus.PLANNED
    completed_at: Optional[datetime] = None
    error_code: Optional[str] = None
    error_message: Optional[str] = None
    unresolved: Dict[str, List[SubResourceCategory]] = field(default_factory=dict)

    @property
    def expired_count(self) -> int:
        return len(self.expired)

    @property
    def succeeded_count(self) -> int:
        return self._count(DeletionStatus.SUCCEEDED)

    @property
    def failed_count(self) -> int:
        return self._count(DeletionStatus.FAILED)

    @property
    def skipped_count(self) -> int:
        return self._count(DeletionStatus.SKIPPED)

    @property
    def planned_count(self) -> int:
        return self._count(DeletionStatus.DRY_RUN)

    @property
    def duration_seconds(self) -> Optional[float]:
        if self.completed_at is None:
            return None
        return (self.completed_at - self.timestamp).total_seconds()

    def _count(self, status: DeletionStatus) -> int:
        return sum(1 for record in self.records if record.status == status)

    def add_record(self, record: DeletionRecord) -> None:
        self.records.append(record)

    def finalize(self, completed_at: Optional[datetime] = None) -> ReapOperation:
        """Compute the final status and stamp the completion time."""
        if self.error_code is not None:
            self.status = OperationStatus.FAILED
        elif self.mode == OperationMode.DRY_RUN:
            self.status = OperationStatus.PLANNED
        elif self.failed_count > 0:
            self.status = OperationStatus.PARTIAL if self.succeeded_count > 0 else OperationStatus.FAILED
        else:
            self.status = OperationStatus.COMPLETED

        self.completed_at = completed_at or datetime.now(timezone.utc)
        return self

    def validate(self) -> bool:
        """Validate operation invariants.

        Validation rules:
            - expired resources cannot outnumber discovered ones
            - completed_at must be after timestamp
            - dry-run mode must have planned status (unless its listing failed)
              and no attempted deletions
            - failed listings require an error code

        Returns:
            True if validation passes

        Raises:
            ValueError: If any validation rule fails
        """
        if self.expired_count > self.discovered_count:
            raise ValueError("Expired count exceeds discovered count")

        if self.completed_at and self.completed_at < self.timestamp:
            raise ValueError("Completion time before start time")

        if self.error_message and not self.error_code:
            raise ValueError("Listing error requires error_code")

        if self.mode == OperationMode.DRY_RUN:
            if self.status != OperationStatus.PLANNED and self.error_code is None:
                raise ValueError("Dry-run mode must have planned status")
            if self.succeeded_count or self.failed_count:
                raise ValueError("Dry-run mode cannot attempt deletions")

        return True

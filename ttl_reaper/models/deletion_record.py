"""Deletion record model.

Outcome of a single resource deletion within a reaper pass.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional


class DeletionStatus(Enum):
    """Individual resource deletion status."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"
    DRY_RUN = "dry-run"


@dataclass
class DeletionRecord:
    """Deletion record entity.

    One record per resource the pass deleted, failed to delete, skipped, or
    (in dry-run mode) would have deleted. Records live only as long as the
    ReapOperation that holds them.

    Validation rules:
        - status=succeeded: no error_code or skip_reason
        - status=failed: requires error_code
        - status=skipped: requires skip_reason
        - deletion_tier must be >= 1 if provided

    Attributes:
        resource_id: Resource identifier (ID or ARN)
        resource_type: AWS resource type (e.g., "AWS::EC2::Subnet")
        region: AWS region
        status: Deletion outcome
        parent_id: Owning VPC ID for sub-resources (optional)
        error_code: AWS error code if failed (optional)
        error_message: Human-readable error if failed (optional)
        skip_reason: Why the resource was skipped (optional)
        deletion_tier: Position in the deletion order (optional)
        timestamp: When the deletion was attempted
    """

    resource_id: str
    resource_type: str
    region: str
    status: DeletionStatus
    parent_id: Optional[str] = None
    error_code: Optional[str] = None
    error_message: Optional[str] = None
    skip_reason: Optional[str] = None
    deletion_tier: Optional[int] = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def validate(self) -> bool:
        """Validate record invariants.

        Returns:
            True if validation passes

        Raises:
            ValueError: If any validation rule fails
        """
        if self.status == DeletionStatus.FAILED:
            if not self.error_code:
                raise ValueError("Failed status requires error_code")
        elif self.status == DeletionStatus.SKIPPED:
            if not self.skip_reason:
                raise ValueError("Skipped status requires skip_reason")
        elif self.status == DeletionStatus.SUCCEEDED:
            if self.error_code or self.skip_reason:
                raise ValueError("Succeeded status cannot have error or skip reason")

        if self.deletion_tier is not None and self.deletion_tier < 1:
            raise ValueError("Deletion tier must be >= 1")

        return True

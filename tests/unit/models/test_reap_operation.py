"""Tests for ReapOperation model.

Test coverage for operation status transitions and invariants.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from ttl_reaper.models.deletion_record import DeletionRecord, DeletionStatus
from ttl_reaper.models.reap_operation import OperationMode, OperationStatus, ReapOperation
from ttl_reaper.models.resource import LoadBalancer

START = datetime(2025, 1, 15, 10, 0, 0, tzinfo=timezone.utc)


def make_operation(mode: OperationMode = OperationMode.EXECUTE) -> ReapOperation:
    return ReapOperation(operation_id="op_1", family="vpc", region="us-east-1", mode=mode, timestamp=START)


def record(resource_id: str, status: DeletionStatus) -> DeletionRecord:
    return DeletionRecord(
        resource_id=resource_id,
        resource_type="AWS::EC2::VPC",
        region="us-east-1",
        status=status,
        error_code="DependencyViolation" if status == DeletionStatus.FAILED else None,
    )


class TestReapOperation:
    """Test suite for ReapOperation model."""

    def test_defaults(self) -> None:
        """Test a new operation is planned and empty."""
        operation = make_operation()

        assert operation.status == OperationStatus.PLANNED
        assert operation.discovered_count == 0
        assert operation.expired_count == 0
        assert operation.records == []
        assert operation.duration_seconds is None

    def test_counts(self) -> None:
        """Test counters reflect record statuses."""
        operation = make_operation()
        operation.add_record(record("a", DeletionStatus.SUCCEEDED))
        operation.add_record(record("b", DeletionStatus.SUCCEEDED))
        operation.add_record(record("c", DeletionStatus.FAILED))

        assert operation.succeeded_count == 2
        assert operation.failed_count == 1
        assert operation.skipped_count == 0
        assert operation.planned_count == 0

    def test_finalize_completed(self) -> None:
        """Test all successes complete the operation."""
        operation = make_operation()
        operation.add_record(record("a", DeletionStatus.SUCCEEDED))

        operation.finalize(completed_at=START + timedelta(seconds=5))

        assert operation.status == OperationStatus.COMPLETED
        assert operation.duration_seconds == 5

    def test_finalize_nothing_to_do(self) -> None:
        """Test an execute pass with no records completes."""
        assert make_operation().finalize().status == OperationStatus.COMPLETED

    def test_finalize_partial(self) -> None:
        """Test mixed outcomes make the operation partial."""
        operation = make_operation()
        operation.add_record(record("a", DeletionStatus.SUCCEEDED))
        operation.add_record(record("b", DeletionStatus.FAILED))

        assert operation.finalize().status == OperationStatus.PARTIAL

    def test_finalize_failed(self) -> None:
        """Test only failures make the operation failed."""
        operation = make_operation()
        operation.add_record(record("a", DeletionStatus.FAILED))

        assert operation.finalize().status == OperationStatus.FAILED

    def test_finalize_dry_run(self) -> None:
        """Test dry-run passes stay planned."""
        operation = make_operation(OperationMode.DRY_RUN)
        operation.add_record(record("a", DeletionStatus.DRY_RUN))

        assert operation.finalize().status == OperationStatus.PLANNED
        assert operation.planned_count == 1

    def test_finalize_listing_error(self) -> None:
        """Test a failed family listing makes the operation failed in any mode."""
        for mode in OperationMode:
            operation = make_operation(mode)
            operation.error_code = "ConnectionError"
            operation.error_message = "no route to host"

            assert operation.finalize().status == OperationStatus.FAILED
            assert operation.validate() is True

    def test_skipped_records_keep_operation_completed(self) -> None:
        """Test skipped resources do not count as failures."""
        operation = make_operation()
        operation.add_record(
            DeletionRecord(
                resource_id="vpc-1",
                resource_type="AWS::EC2::VPC",
                region="us-east-1",
                status=DeletionStatus.SKIPPED,
                skip_reason="status is pending",
            )
        )

        assert operation.finalize().status == OperationStatus.COMPLETED
        assert operation.skipped_count == 1

    def test_validate_expired_within_discovered(self) -> None:
        """Test more expired than discovered resources is invalid."""
        operation = make_operation()
        operation.expired.append(LoadBalancer(resource_id="arn:lb", name="lb", status="active"))

        with pytest.raises(ValueError, match="Expired count"):
            operation.validate()

    def test_validate_completion_after_start(self) -> None:
        """Test completion cannot precede the start."""
        operation = make_operation()
        operation.completed_at = START - timedelta(seconds=1)

        with pytest.raises(ValueError, match="Completion time"):
            operation.validate()

    def test_validate_dry_run_without_deletions(self) -> None:
        """Test dry-run operations cannot hold attempted deletions."""
        operation = make_operation(OperationMode.DRY_RUN)
        operation.add_record(record("a", DeletionStatus.SUCCEEDED))

        with pytest.raises(ValueError, match="cannot attempt deletions"):
            operation.validate()

    def test_validate_dry_run_status(self) -> None:
        """Test dry-run operations must be planned."""
        operation = make_operation(OperationMode.DRY_RUN)
        operation.status = OperationStatus.COMPLETED

        with pytest.raises(ValueError, match="planned status"):
            operation.validate()

    def test_validate_listing_error_requires_code(self) -> None:
        """Test a listing error message without a code is invalid."""
        operation = make_operation()
        operation.error_message = "no route to host"

        with pytest.raises(ValueError, match="requires error_code"):
            operation.validate()

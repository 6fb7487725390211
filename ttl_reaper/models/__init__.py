"""Data models for reaper passes."""

from __future__ import annotations

from .deletion_record import DeletionRecord, DeletionStatus
from .reap_operation import OperationMode, OperationStatus, ReapOperation
from .resource import (
    NO_TTL,
    LoadBalancer,
    NetworkContainer,
    SubResourceCategory,
    SubResourceRef,
    Tag,
    TaggedResource,
    TagRole,
    tags_to_dict,
)

__all__ = [
    "NO_TTL",
    "DeletionRecord",
    "DeletionStatus",
    "LoadBalancer",
    "NetworkContainer",
    "OperationMode",
    "OperationStatus",
    "ReapOperation",
    "SubResourceCategory",
    "SubResourceRef",
    "Tag",
    "TaggedResource",
    "TagRole",
    "tags_to_dict",
]

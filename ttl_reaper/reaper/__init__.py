"""TTL reaping of AWS resources.

This module discovers resources tagged with a TTL, evaluates their
expiration and deletes expired ones in dependency order.

Classes:
    Reaper: Main orchestrator for reaper passes
    ResourceLister: Tagged resource discovery
    SubResourceResolver: Concurrent VPC sub-resource discovery
    ResourceTagger: TTL tagging of resources and resource families
"""

from __future__ import annotations

from .expiration import expires_at, is_expired
from .lister import ResourceLister
from .reaper import FAMILIES, FAMILY_LOAD_BALANCER, FAMILY_VPC, Reaper
from .resolver import SubResourceResolver
from .tagger import ResourceTagger
from .tags import decode_ttl, encode_ttl_tag

__all__ = [
    "FAMILIES",
    "FAMILY_LOAD_BALANCER",
    "FAMILY_VPC",
    "Reaper",
    "ResourceLister",
    "ResourceTagger",
    "SubResourceResolver",
    "decode_ttl",
    "encode_ttl_tag",
    "expires_at",
    "is_expired",
]

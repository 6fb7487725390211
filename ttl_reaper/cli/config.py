"""Configuration loading for the CLI.

Settings are read, in increasing priority, from defaults, a YAML file
(``$TTL_REAPER_CONFIG`` or ``~/.ttl-reaper/config.yaml``), environment
variables, and finally CLI options.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path.home() / ".ttl-reaper" / "config.yaml"

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Config:
    """Reaper configuration.

    Attributes:
        aws_profile: AWS profile name (optional)
        regions: Regions to reap
        tag_name: Marker tag key identifying managed resources
        dry_run: Suppress deletions
        log_level: Default log level
        max_workers: Upper bound on VPCs resolved concurrently
        connect_timeout: AWS client connect timeout in seconds
        read_timeout: AWS client read timeout in seconds
    """

    aws_profile: Optional[str] = None
    regions: List[str] = field(default_factory=lambda: ["us-east-1"])
    tag_name: str = "ttl"
    dry_run: bool = True
    log_level: str = "INFO"
    max_workers: int = 10
    connect_timeout: int = 10
    read_timeout: int = 60

    @classmethod
    def load(cls, path: Optional[str] = None) -> "Config":
        """Load configuration from file and environment.

        Args:
            path: Config file path (default: $TTL_REAPER_CONFIG or ~/.ttl-reaper/config.yaml)

        Returns:
            Validated Config

        Raises:
            ValueError: If the file or a value is invalid
        """
        config_path = Path(path or os.environ.get("TTL_REAPER_CONFIG") or DEFAULT_CONFIG_PATH)

        data: Dict[str, Any] = {}
        if config_path.exists():
            with open(config_path, "r") as f:
                try:
                    data = yaml.safe_load(f) or {}
                except yaml.YAMLError as e:
                    raise ValueError(f"Invalid config file {config_path}: {e}")
            if not isinstance(data, dict):
                raise ValueError(f"Invalid config file {config_path}: expected a mapping")
            logger.debug(f"Loaded configuration from {config_path}")

        config = cls.from_dict(data)
        config.apply_env()
        config.validate()
        return config

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Config":
        """Create configuration from a dictionary, ignoring unknown keys."""
        known = {name: data[name] for name in cls.__dataclass_fields__ if name in data}
        unknown = set(data) - set(known)
        if unknown:
            logger.warning(f"Ignoring unknown config keys: {', '.join(sorted(unknown))}")

        if isinstance(known.get("regions"), str):
            known["regions"] = [known["regions"]]
        return cls(**known)

    def apply_env(self) -> None:
        """Override settings from environment variables."""
        if os.environ.get("AWS_PROFILE"):
            self.aws_profile = os.environ["AWS_PROFILE"]
        if os.environ.get("TTL_REAPER_REGIONS"):
            self.regions = [r.strip() for r in os.environ["TTL_REAPER_REGIONS"].split(",") if r.strip()]
        if os.environ.get("TTL_REAPER_TAG_NAME"):
            self.tag_name = os.environ["TTL_REAPER_TAG_NAME"]
        if os.environ.get("TTL_REAPER_DRY_RUN"):
            self.dry_run = _parse_bool(os.environ["TTL_REAPER_DRY_RUN"])
        if os.environ.get("TTL_REAPER_LOG_LEVEL"):
            self.log_level = os.environ["TTL_REAPER_LOG_LEVEL"].upper()

    def validate(self) -> bool:
        """Validate configuration values.

        Returns:
            True if valid

        Raises:
            ValueError: If any value is invalid
        """
        if not self.regions:
            raise ValueError("At least one region must be configured")
        if not self.tag_name:
            raise ValueError("tag_name cannot be empty")
        if self.log_level.upper() not in VALID_LOG_LEVELS:
            raise ValueError(f"Invalid log level: {self.log_level}. Must be one of {', '.join(VALID_LOG_LEVELS)}")
        if self.max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        return True

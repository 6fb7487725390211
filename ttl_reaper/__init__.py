"""AWS TTL Reaper - tag-driven expiration and cleanup of AWS resources."""

__version__ = "0.1.0"

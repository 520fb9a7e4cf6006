"""Service directory domain."""

from .directory import ServiceDirectory, start_heartbeat

__all__ = ["ServiceDirectory", "start_heartbeat"]

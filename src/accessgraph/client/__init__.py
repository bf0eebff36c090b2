"""HTTP client for the Access Directory Service."""

from .directory import AccessDirectoryClient, SnapshotDirectoryClient

__all__ = ["AccessDirectoryClient", "SnapshotDirectoryClient"]

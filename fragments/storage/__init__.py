"""Storage backends for fragment metadata and data."""

from fragments.config import Settings
from fragments.storage.base import StorageBackend
from fragments.storage.memory import MemoryBackend, MemoryDB


def create_backend(settings: Settings) -> StorageBackend:
    """
    Build the storage backend selected by configuration.

    Args:
        settings: Settings snapshot (storage_backend is 'memory' or 'aws')

    Returns:
        StorageBackend instance, created once per process
    """
    if settings.storage_backend == "memory":
        return MemoryBackend()

    if settings.storage_backend == "aws":
        from fragments.storage.aws import AwsBackend
        return AwsBackend.from_settings(settings)

    raise ValueError(f"Unknown storage backend: {settings.storage_backend!r}")


__all__ = [
    "StorageBackend",
    "MemoryBackend",
    "MemoryDB",
    "create_backend",
]

"""Request-scoped access to the process-wide collaborators on app.state."""

from fastapi import Request

from fragments.storage.base import StorageBackend


def get_backend(request: Request) -> StorageBackend:
    """
    FastAPI dependency returning the storage backend created at startup.
    """
    return request.app.state.backend

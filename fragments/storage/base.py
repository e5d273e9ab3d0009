"""Storage backend contract shared by every variant."""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Union

from common.logging_config import get_logger
from fragments.exceptions import FragmentNotFoundError

logger = get_logger(__name__)


class StorageBackend(ABC):
    """
    Persists fragment metadata records and fragment data blobs.

    Records are plain dicts of the shape
    {"ownerId", "id", "created", "updated", "type", "size"}; metadata is
    addressed by (ownerId, id) and blobs by the composite key "ownerId/id".
    """

    name = "abstract"

    @abstractmethod
    async def put_metadata(self, record: Dict[str, Any]) -> Dict[str, Any]:
        """Upsert a metadata record and return the stored record."""

    @abstractmethod
    async def get_metadata(self, owner_id: str, fragment_id: str) -> Optional[Dict[str, Any]]:
        """Return the record, or None if absent."""

    @abstractmethod
    async def list_metadata(self, owner_id: str, expand: bool = False) -> List[Union[str, Dict[str, Any]]]:
        """Return every record (expand) or every id owned by owner_id."""

    @abstractmethod
    async def delete_metadata(self, owner_id: str, fragment_id: str) -> None:
        """Remove a record. Raises FragmentNotFoundError if absent."""

    @abstractmethod
    async def put_data(self, owner_id: str, fragment_id: str, data: bytes) -> None:
        """Store a data blob, overwriting any previous one."""

    @abstractmethod
    async def get_data(self, owner_id: str, fragment_id: str) -> Optional[bytes]:
        """Return the data blob, or None if it was never written."""

    @abstractmethod
    async def delete_data(self, owner_id: str, fragment_id: str) -> None:
        """Remove a data blob."""

    async def delete_fragment(self, owner_id: str, fragment_id: str) -> None:
        """
        Delete a fragment's blob and metadata.

        The existence check comes first so a missing fragment is reported
        as not found. A failed blob delete only leaves an unreachable orphan,
        so it is logged and ignored; a failed metadata delete propagates.

        Raises:
            FragmentNotFoundError: If (owner_id, fragment_id) has no metadata
        """
        record = await self.get_metadata(owner_id, fragment_id)
        if record is None:
            raise FragmentNotFoundError(f"Fragment {fragment_id} not found")

        try:
            await self.delete_data(owner_id, fragment_id)
        except Exception as e:
            logger.warning(
                f"Blob delete failed, continuing with metadata delete "
                f"[owner_id={owner_id}] [fragment_id={fragment_id}]: {e}"
            )

        await self.delete_metadata(owner_id, fragment_id)
        logger.info(f"Fragment deleted [owner_id={owner_id}] [fragment_id={fragment_id}] [backend={self.name}]")

    async def close(self) -> None:
        """Release any client resources held by the backend."""

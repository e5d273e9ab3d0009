"""Fragment entity: metadata plus on-demand access to its data."""

from numbers import Integral
from typing import Any, Dict, List, Optional, Union

from common.constants import SUPPORTED_TYPES
from common.logging_config import get_logger
from fragments.content_type import ContentTypeParseError, normalize_mime
from fragments.exceptions import FragmentNotFoundError, FragmentValidationError
from fragments.storage.base import StorageBackend
from fragments.utils import generate_uuid, get_current_timestamp

logger = get_logger(__name__)


class Fragment:
    """
    A transient view of one owner-scoped fragment.

    Instances own nothing: every read and write goes through the storage
    backend they were constructed with.
    """

    def __init__(
        self,
        backend: StorageBackend,
        owner_id: str,
        type: str,
        id: Optional[str] = None,
        size: int = 0,
        created: Optional[str] = None,
        updated: Optional[str] = None,
    ):
        if not owner_id:
            raise FragmentValidationError("owner_id is required")
        if not type:
            raise FragmentValidationError("type is required")
        if not Fragment.is_supported_type(type):
            raise FragmentValidationError(f"unsupported type: {type}")
        if isinstance(size, bool) or not isinstance(size, Integral) or size < 0:
            raise FragmentValidationError("size must be a non-negative integer")

        now = get_current_timestamp()

        self._backend = backend
        self.id = id or generate_uuid()
        self.owner_id = owner_id
        self.type = type
        self.size = int(size)
        self.created = created or now
        self.updated = updated or now

    @classmethod
    def from_record(cls, backend: StorageBackend, record: Dict[str, Any]) -> "Fragment":
        """
        Rehydrate a fragment from a stored metadata record.
        """
        return cls(
            backend,
            owner_id=record.get("ownerId"),
            type=record.get("type"),
            id=record.get("id"),
            size=record.get("size", 0),
            created=record.get("created"),
            updated=record.get("updated"),
        )

    @staticmethod
    async def by_owner(
        backend: StorageBackend,
        owner_id: str,
        expand: bool = False,
    ) -> List[Union[str, "Fragment"]]:
        """
        List an owner's fragments.

        Returns:
            Fragment ids, or Fragment instances when expand is True
        """
        results = await backend.list_metadata(owner_id, expand)
        if expand:
            return [Fragment.from_record(backend, record) for record in results]
        return results

    @staticmethod
    async def by_id(backend: StorageBackend, owner_id: str, fragment_id: str) -> "Fragment":
        """
        Load one fragment.

        Raises:
            FragmentNotFoundError: If the backend has no metadata for (owner_id, fragment_id)
        """
        if not fragment_id:
            raise FragmentNotFoundError("Fragment id is empty")
        record = await backend.get_metadata(owner_id, fragment_id)
        if record is None:
            raise FragmentNotFoundError(f"Fragment {fragment_id} not found")
        return Fragment.from_record(backend, record)

    @staticmethod
    async def delete(backend: StorageBackend, owner_id: str, fragment_id: str) -> None:
        """
        Delete a fragment's metadata and data.

        Raises:
            FragmentNotFoundError: If the fragment does not exist
        """
        await backend.delete_fragment(owner_id, fragment_id)

    def to_record(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "ownerId": self.owner_id,
            "created": self.created,
            "updated": self.updated,
            "type": self.type,
            "size": self.size,
        }

    async def save(self) -> None:
        self.updated = get_current_timestamp()
        await self._backend.put_metadata(self.to_record())

    async def get_data(self) -> Optional[bytes]:
        return await self._backend.get_data(self.owner_id, self.id)

    async def set_data(self, data: bytes) -> None:
        """
        Store new data, then update size and metadata.

        The blob is written before the metadata, so a failure in between
        leaves at worst an unreachable blob.
        """
        if not isinstance(data, (bytes, bytearray)):
            raise FragmentValidationError("set_data() requires bytes")

        await self._backend.put_data(self.owner_id, self.id, bytes(data))
        self.size = len(data)
        await self.save()
        logger.debug(f"Fragment data written [fragment_id={self.id}] [size={self.size}]")

    @property
    def mime_type(self) -> str:
        return normalize_mime(self.type)

    @property
    def is_text(self) -> bool:
        return self.mime_type.startswith("text/")

    @property
    def formats(self) -> List[str]:
        """Mime types this fragment can be returned as, in preference order."""
        if self.mime_type == "text/markdown":
            return ["text/markdown", "text/html", "text/plain"]
        return [self.mime_type]

    @staticmethod
    def is_supported_type(value) -> bool:
        try:
            return normalize_mime(value) in SUPPORTED_TYPES
        except ContentTypeParseError:
            return False

    def __repr__(self) -> str:
        return f"Fragment(id={self.id!r}, owner_id={self.owner_id!r}, type={self.type!r}, size={self.size!r})"

"""In-process storage backend for development and tests."""

import json
from typing import Any, Dict, List, Optional, Tuple, Union

from fragments.exceptions import FragmentNotFoundError
from fragments.storage.base import StorageBackend


def _validate_key(key) -> None:
    if not isinstance(key, str) or not key:
        raise TypeError(f"keys must be non-empty strings, got {key!r}")


class MemoryDB:
    """
    Two-level key/value store: values are addressed by (primary, secondary).
    """

    def __init__(self):
        self._db: Dict[str, Dict[str, Any]] = {}

    async def put(self, primary_key: str, secondary_key: str, value: Any) -> None:
        _validate_key(primary_key)
        _validate_key(secondary_key)
        self._db.setdefault(primary_key, {})[secondary_key] = value

    async def get(self, primary_key: str, secondary_key: str) -> Optional[Any]:
        _validate_key(primary_key)
        _validate_key(secondary_key)
        return self._db.get(primary_key, {}).get(secondary_key)

    async def query(self, primary_key: str) -> List[Tuple[str, Any]]:
        _validate_key(primary_key)
        return list(self._db.get(primary_key, {}).items())

    async def delete(self, primary_key: str, secondary_key: str) -> None:
        _validate_key(primary_key)
        _validate_key(secondary_key)
        owner_values = self._db.get(primary_key)
        if owner_values is None or secondary_key not in owner_values:
            raise KeyError(f"missing entry for primaryKey={primary_key} and secondaryKey={secondary_key}")
        del owner_values[secondary_key]
        if not owner_values:
            del self._db[primary_key]


class MemoryBackend(StorageBackend):
    """
    Keeps metadata and data in two MemoryDB instances.

    Metadata is stored JSON-serialized so callers always get a fresh copy,
    the way records come back from a network store.
    """

    name = "memory"

    def __init__(self):
        self.metadata = MemoryDB()
        self.data = MemoryDB()

    async def put_metadata(self, record: Dict[str, Any]) -> Dict[str, Any]:
        await self.metadata.put(record.get("ownerId"), record.get("id"), json.dumps(record))
        return dict(record)

    async def get_metadata(self, owner_id: str, fragment_id: str) -> Optional[Dict[str, Any]]:
        serialized = await self.metadata.get(owner_id, fragment_id)
        if serialized is None:
            return None
        return json.loads(serialized)

    async def list_metadata(self, owner_id: str, expand: bool = False) -> List[Union[str, Dict[str, Any]]]:
        records = [json.loads(serialized) for _, serialized in await self.metadata.query(owner_id)]
        if expand:
            return records
        return [record["id"] for record in records]

    async def delete_metadata(self, owner_id: str, fragment_id: str) -> None:
        try:
            await self.metadata.delete(owner_id, fragment_id)
        except KeyError:
            raise FragmentNotFoundError(f"Fragment {fragment_id} not found")

    async def put_data(self, owner_id: str, fragment_id: str, data: bytes) -> None:
        await self.data.put(owner_id, fragment_id, bytes(data))

    async def get_data(self, owner_id: str, fragment_id: str) -> Optional[bytes]:
        return await self.data.get(owner_id, fragment_id)

    async def delete_data(self, owner_id: str, fragment_id: str) -> None:
        await self.data.delete(owner_id, fragment_id)

"""Tests for the Fragment model."""

import re

import pytest

from fragments.exceptions import FragmentNotFoundError, FragmentValidationError
from fragments.models.fragment import Fragment
from fragments.storage.memory import MemoryBackend


OWNER = "owner-1234"
TIMESTAMP = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z$")


class TestConstruction:
    """Tests for Fragment validation."""

    def test_defaults(self, backend):
        fragment = Fragment(backend, owner_id=OWNER, type="text/plain")
        assert fragment.id
        assert fragment.size == 0
        assert TIMESTAMP.match(fragment.created)
        assert fragment.created == fragment.updated

    def test_ids_are_unique(self, backend):
        first = Fragment(backend, owner_id=OWNER, type="text/plain")
        second = Fragment(backend, owner_id=OWNER, type="text/plain")
        assert first.id != second.id

    def test_explicit_fields_are_kept(self, backend):
        fragment = Fragment(
            backend,
            owner_id=OWNER,
            type="text/plain; charset=utf-8",
            id="frag-1",
            size=3,
            created="2024-01-01T00:00:00.000Z",
            updated="2024-01-02T00:00:00.000Z",
        )
        assert fragment.id == "frag-1"
        assert fragment.type == "text/plain; charset=utf-8"
        assert fragment.size == 3
        assert fragment.created == "2024-01-01T00:00:00.000Z"
        assert fragment.updated == "2024-01-02T00:00:00.000Z"

    @pytest.mark.parametrize("kwargs", [
        {"owner_id": "", "type": "text/plain"},
        {"owner_id": None, "type": "text/plain"},
        {"owner_id": OWNER, "type": ""},
        {"owner_id": OWNER, "type": None},
        {"owner_id": OWNER, "type": "application/xml"},
        {"owner_id": OWNER, "type": "text/plain", "size": -1},
        {"owner_id": OWNER, "type": "text/plain", "size": "1"},
        {"owner_id": OWNER, "type": "text/plain", "size": True},
        {"owner_id": OWNER, "type": "text/plain", "size": float("nan")},
        {"owner_id": OWNER, "type": "text/plain", "size": 1.5},
        {"owner_id": OWNER, "type": "text/plain", "size": 2.0},
    ])
    def test_invalid_construction(self, backend, kwargs):
        with pytest.raises(FragmentValidationError):
            Fragment(backend, **kwargs)


class TestTypeHelpers:
    """Tests for mime_type, is_text, formats and is_supported_type."""

    def test_mime_type_strips_parameters(self, backend):
        fragment = Fragment(backend, owner_id=OWNER, type="text/plain; charset=utf-8")
        assert fragment.mime_type == "text/plain"
        assert fragment.type == "text/plain; charset=utf-8"

    @pytest.mark.parametrize("content_type, is_text", [
        ("text/plain", True),
        ("text/markdown", True),
        ("application/json", False),
    ])
    def test_is_text(self, backend, content_type, is_text):
        assert Fragment(backend, owner_id=OWNER, type=content_type).is_text is is_text

    @pytest.mark.parametrize("content_type, formats", [
        ("text/plain", ["text/plain"]),
        ("text/markdown", ["text/markdown", "text/html", "text/plain"]),
        ("application/json", ["application/json"]),
    ])
    def test_formats(self, backend, content_type, formats):
        assert Fragment(backend, owner_id=OWNER, type=content_type).formats == formats

    @pytest.mark.parametrize("value", [
        "text/plain",
        "text/plain; charset=utf-8",
        "TEXT/Markdown",
        "application/json",
    ])
    def test_supported_types(self, value):
        assert Fragment.is_supported_type(value)

    @pytest.mark.parametrize("value", [
        "application/xml",
        "image/png",
        "text/html",
        "",
        "garbage",
        "text/plain;",
        None,
        42,
    ])
    def test_unsupported_types(self, value):
        assert Fragment.is_supported_type(value) is False


class TestPersistence:
    """Tests for Fragment storage operations against the memory backend."""

    @pytest.mark.asyncio
    async def test_save_updates_timestamp_and_stores_record(self, backend):
        fragment = Fragment(backend, owner_id=OWNER, type="text/plain", updated="2000-01-01T00:00:00.000Z")
        await fragment.save()

        assert fragment.updated != "2000-01-01T00:00:00.000Z"
        assert await backend.get_metadata(OWNER, fragment.id) == fragment.to_record()

    @pytest.mark.asyncio
    async def test_set_data_updates_size(self, backend):
        fragment = Fragment(backend, owner_id=OWNER, type="text/plain")
        await fragment.set_data(b"hello")

        assert fragment.size == 5
        assert await fragment.get_data() == b"hello"
        stored = await Fragment.by_id(backend, OWNER, fragment.id)
        assert stored.size == 5

    @pytest.mark.asyncio
    async def test_set_data_requires_bytes(self, backend):
        fragment = Fragment(backend, owner_id=OWNER, type="text/plain")
        with pytest.raises(FragmentValidationError):
            await fragment.set_data("hello")

    @pytest.mark.asyncio
    async def test_set_data_accepts_empty_body(self, backend):
        fragment = Fragment(backend, owner_id=OWNER, type="text/plain")
        await fragment.set_data(b"")
        assert fragment.size == 0
        assert await fragment.get_data() == b""

    @pytest.mark.asyncio
    async def test_by_id_round_trip(self, backend):
        fragment = Fragment(backend, owner_id=OWNER, type="text/markdown")
        await fragment.set_data(b"# Title")

        loaded = await Fragment.by_id(backend, OWNER, fragment.id)

        assert loaded.to_record() == fragment.to_record()

    @pytest.mark.asyncio
    async def test_by_id_missing(self, backend):
        with pytest.raises(FragmentNotFoundError):
            await Fragment.by_id(backend, OWNER, "missing")

    @pytest.mark.asyncio
    async def test_by_id_empty_id(self, backend):
        with pytest.raises(FragmentNotFoundError):
            await Fragment.by_id(backend, OWNER, "")

    @pytest.mark.asyncio
    async def test_fractional_size_in_stored_record(self, backend):
        fragment = Fragment(backend, owner_id=OWNER, type="text/plain", id="frag-1")
        await backend.put_metadata({**fragment.to_record(), "size": 1.5})

        with pytest.raises(FragmentValidationError):
            await Fragment.by_id(backend, OWNER, "frag-1")

    @pytest.mark.asyncio
    async def test_by_id_other_owner(self, backend):
        fragment = Fragment(backend, owner_id=OWNER, type="text/plain")
        await fragment.save()
        with pytest.raises(FragmentNotFoundError):
            await Fragment.by_id(backend, "someone-else", fragment.id)

    @pytest.mark.asyncio
    async def test_by_owner(self, backend):
        first = Fragment(backend, owner_id=OWNER, type="text/plain")
        second = Fragment(backend, owner_id=OWNER, type="application/json")
        await first.save()
        await second.save()

        ids = await Fragment.by_owner(backend, OWNER)
        expanded = await Fragment.by_owner(backend, OWNER, expand=True)

        assert sorted(ids) == sorted([first.id, second.id])
        assert all(isinstance(fragment, Fragment) for fragment in expanded)
        assert sorted(fragment.id for fragment in expanded) == sorted(ids)

    @pytest.mark.asyncio
    async def test_by_owner_empty(self, backend):
        assert await Fragment.by_owner(backend, OWNER) == []

    @pytest.mark.asyncio
    async def test_delete(self, backend):
        fragment = Fragment(backend, owner_id=OWNER, type="text/plain")
        await fragment.set_data(b"bye")

        await Fragment.delete(backend, OWNER, fragment.id)

        with pytest.raises(FragmentNotFoundError):
            await Fragment.by_id(backend, OWNER, fragment.id)
        assert await backend.get_data(OWNER, fragment.id) is None

    @pytest.mark.asyncio
    async def test_delete_missing(self, backend):
        with pytest.raises(FragmentNotFoundError):
            await Fragment.delete(backend, OWNER, "missing")

    def test_repr(self):
        fragment = Fragment(MemoryBackend(), owner_id=OWNER, type="text/plain", id="frag-1")
        assert "frag-1" in repr(fragment)

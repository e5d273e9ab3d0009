"""Fragment API routes."""

from fastapi import APIRouter, Depends, Query, Request, Response, status

from common.constants import API_PREFIX
from common.logging_config import get_logger
from fragments import config
from fragments.auth import get_current_owner
from fragments.conversion import convert
from fragments.dependencies import get_backend
from fragments.exceptions import (
    FragmentNotFoundError,
    PayloadTooLargeError,
    UnsupportedMediaTypeError,
)
from fragments.models.fragment import Fragment
from fragments.schemas.common import StatusResponse
from fragments.schemas.fragments import (
    FragmentListResponse,
    FragmentMetadata,
    FragmentResponse,
)
from fragments.storage.base import StorageBackend

logger = get_logger(__name__)

router = APIRouter(prefix=f"{API_PREFIX}/fragments", tags=["Fragments"])


def _metadata(fragment: Fragment) -> FragmentMetadata:
    return FragmentMetadata(**fragment.to_record())


def _location(request: Request, fragment_id: str) -> str:
    base = config.API_URL or str(request.base_url)
    return f"{base.rstrip('/')}{API_PREFIX}/fragments/{fragment_id}"


async def _read_body(request: Request) -> bytes:
    limit = config.MAX_FRAGMENT_SIZE_BYTES

    content_length = request.headers.get("content-length")
    if content_length and content_length.isdigit() and int(content_length) > limit:
        raise PayloadTooLargeError(f"Fragment exceeds {limit} bytes")

    body = await request.body()
    if len(body) > limit:
        raise PayloadTooLargeError(f"Fragment exceeds {limit} bytes")

    return body


@router.post("", response_model=FragmentResponse, status_code=status.HTTP_201_CREATED)
async def create_fragment(
    request: Request,
    response: Response,
    owner_id: str = Depends(get_current_owner),
    backend: StorageBackend = Depends(get_backend),
):
    """
    Create a fragment from the raw request body.

    Parameters:
        - Content-Type header: one of the supported types (parameters allowed)
        - body: raw fragment bytes

    Returns:
        - fragment: metadata of the new fragment
        - Location header: URL of the new fragment

    Raises:
        - 401: Missing or invalid credentials
        - 413: Body too large
        - 415: Unsupported Content-Type
    """
    content_type = request.headers.get("content-type")
    if not Fragment.is_supported_type(content_type):
        raise UnsupportedMediaTypeError(f"Unsupported media type: {content_type}")

    body = await _read_body(request)

    fragment = Fragment(backend, owner_id=owner_id, type=content_type)
    await fragment.set_data(body)

    logger.info(f"Fragment created [owner_id={owner_id}] [fragment_id={fragment.id}] [size={fragment.size}]")

    response.headers["Location"] = _location(request, fragment.id)
    return FragmentResponse(fragment=_metadata(fragment))


@router.get("", response_model=FragmentListResponse)
async def list_fragments(
    expand: str = Query("0", description="1 to return full metadata instead of ids"),
    owner_id: str = Depends(get_current_owner),
    backend: StorageBackend = Depends(get_backend),
):
    """
    List the current owner's fragments.

    Parameters:
        - expand: '1' for metadata objects, anything else for ids

    Returns:
        - fragments: ids or metadata objects, in no particular order

    Raises:
        - 401: Missing or invalid credentials
    """
    expanded = expand == "1"
    results = await Fragment.by_owner(backend, owner_id, expanded)

    if expanded:
        return FragmentListResponse(fragments=[_metadata(fragment) for fragment in results])
    return FragmentListResponse(fragments=results)


@router.get("/{fragment_id}/info", response_model=FragmentResponse)
async def get_fragment_info(
    fragment_id: str,
    owner_id: str = Depends(get_current_owner),
    backend: StorageBackend = Depends(get_backend),
):
    """
    Get a fragment's metadata.

    Raises:
        - 401: Missing or invalid credentials
        - 404: Fragment not found
    """
    fragment = await Fragment.by_id(backend, owner_id, fragment_id)
    return FragmentResponse(fragment=_metadata(fragment))


@router.get("/{fragment_path}")
async def get_fragment_data(
    fragment_path: str,
    owner_id: str = Depends(get_current_owner),
    backend: StorageBackend = Depends(get_backend),
):
    """
    Get a fragment's data, optionally converted by an extension suffix.

    Parameters:
        - fragment_path: '<id>' for raw data, '<id>.<ext>' for a conversion

    Returns:
        - raw bytes with the stored Content-Type, or the converted representation

    Raises:
        - 401: Missing or invalid credentials
        - 404: Fragment or its data not found
        - 415: Unsupported conversion
    """
    fragment_id, _, extension = fragment_path.partition(".")
    if not fragment_id:
        raise FragmentNotFoundError(f"Fragment not found: {fragment_path}")

    fragment = await Fragment.by_id(backend, owner_id, fragment_id)
    data = await fragment.get_data()
    if data is None:
        raise FragmentNotFoundError(f"Fragment {fragment_id} has no data")

    if not extension:
        return Response(content=data, media_type=fragment.type)

    result = convert(fragment.mime_type, extension, data)
    return Response(content=result.body, media_type=result.content_type)


@router.delete("/{fragment_id}", response_model=StatusResponse)
async def delete_fragment(
    fragment_id: str,
    owner_id: str = Depends(get_current_owner),
    backend: StorageBackend = Depends(get_backend),
):
    """
    Delete a fragment's metadata and data.

    Raises:
        - 401: Missing or invalid credentials
        - 404: Fragment not found
    """
    await Fragment.delete(backend, owner_id, fragment_id)
    return StatusResponse()

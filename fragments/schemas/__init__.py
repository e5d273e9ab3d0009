"""Pydantic schemas for API requests and responses."""

from fragments.schemas.common import (
    ErrorDetail,
    ErrorResponse,
    StatusResponse,
    create_error_response
)
from fragments.schemas.fragments import (
    FragmentMetadata,
    FragmentResponse,
    FragmentListResponse
)

__all__ = [
    "ErrorDetail",
    "ErrorResponse",
    "StatusResponse",
    "create_error_response",
    "FragmentMetadata",
    "FragmentResponse",
    "FragmentListResponse"
]

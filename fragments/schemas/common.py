"""Common schemas used across multiple endpoints."""

from pydantic import BaseModel


class ErrorDetail(BaseModel):
    """Error code and message."""
    code: int
    message: str


class ErrorResponse(BaseModel):
    """Response model for errors."""
    status: str = "error"
    error: ErrorDetail


class StatusResponse(BaseModel):
    """Response model for operations with no payload."""
    status: str = "ok"


def create_error_response(code: int, message: str) -> dict:
    """
    Build the JSON body returned for every error.
    """
    return ErrorResponse(error=ErrorDetail(code=code, message=message)).model_dump()

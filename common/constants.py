"""Project-wide constants (supported types, size limits, AWS defaults)."""

SUPPORTED_TYPES: tuple = (
    "text/plain",
    "text/markdown",
    "application/json",
)

MAX_FRAGMENT_SIZE_BYTES: int = 5 * 1024 * 1024  # 5 MiB, bodies are buffered

DEFAULT_AWS_REGION: str = "us-east-1"
DEFAULT_TABLE_NAME: str = "fragments"
DEFAULT_BUCKET_NAME: str = "fragments"

API_PREFIX: str = "/v1"

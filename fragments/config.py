"""Configuration settings for the Fragments service."""

import os
from dataclasses import dataclass
from typing import Optional

from common.constants import (
    DEFAULT_AWS_REGION,
    DEFAULT_BUCKET_NAME,
    DEFAULT_TABLE_NAME,
    MAX_FRAGMENT_SIZE_BYTES as DEFAULT_MAX_FRAGMENT_SIZE_BYTES,
)


FRAGMENTS_HOST = os.environ.get("FRAGMENTS_HOST", "0.0.0.0")

FRAGMENTS_PORT = int(os.environ.get("FRAGMENTS_PORT", "8080"))

API_URL = os.environ.get("API_URL")

AUTH_STRATEGY = os.environ.get("AUTH_STRATEGY", "bearer")

HTPASSWD_FILE = os.environ.get("HTPASSWD_FILE")

MAX_FRAGMENT_SIZE_BYTES = int(
    os.environ.get("MAX_FRAGMENT_SIZE_BYTES", str(DEFAULT_MAX_FRAGMENT_SIZE_BYTES))
)


@dataclass(frozen=True)
class Settings:
    """
    Snapshot of the environment used to build process-wide collaborators
    (storage backend, credential verifiers).
    """
    storage_backend: str
    aws_region: str
    s3_bucket_name: Optional[str]
    dynamodb_table_name: Optional[str]
    s3_endpoint_url: Optional[str]
    dynamodb_endpoint_url: Optional[str]
    auth_strategy: str
    htpasswd_file: Optional[str]
    cognito_pool_id: Optional[str]
    cognito_client_id: Optional[str]
    cognito_token_use: str


def _select_storage_backend(environ) -> str:
    explicit = environ.get("FRAGMENTS_STORAGE_BACKEND")
    if explicit:
        return explicit.strip().lower()
    if environ.get("AWS_REGION") and environ.get("AWS_S3_BUCKET_NAME"):
        return "aws"
    return "memory"


def load_settings(environ=None) -> Settings:
    """
    Read settings from the environment.

    Args:
        environ: Mapping to read from (defaults to os.environ)

    Returns:
        Settings instance
    """
    if environ is None:
        environ = os.environ

    return Settings(
        storage_backend=_select_storage_backend(environ),
        aws_region=environ.get("AWS_REGION") or environ.get("AWS_DEFAULT_REGION") or DEFAULT_AWS_REGION,
        s3_bucket_name=environ.get("AWS_S3_BUCKET_NAME", DEFAULT_BUCKET_NAME),
        dynamodb_table_name=environ.get("AWS_DYNAMODB_TABLE_NAME", DEFAULT_TABLE_NAME),
        s3_endpoint_url=environ.get("AWS_S3_ENDPOINT_URL") or environ.get("AWS_S3_ENDPOINT"),
        dynamodb_endpoint_url=environ.get("AWS_DYNAMODB_ENDPOINT_URL") or environ.get("AWS_DYNAMODB_ENDPOINT"),
        auth_strategy=environ.get("AUTH_STRATEGY", "bearer").strip().lower(),
        htpasswd_file=environ.get("HTPASSWD_FILE"),
        cognito_pool_id=environ.get("AWS_COGNITO_POOL_ID"),
        cognito_client_id=environ.get("AWS_COGNITO_CLIENT_ID"),
        cognito_token_use=environ.get("AWS_COGNITO_TOKEN_USE", "id").strip().lower(),
    )

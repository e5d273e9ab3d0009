"""Service layer for credential verification."""

from fragments.services.auth_service import (
    BasicAuthVerifier,
    CognitoTokenVerifier,
    create_verifier,
)

__all__ = [
    "BasicAuthVerifier",
    "CognitoTokenVerifier",
    "create_verifier",
]

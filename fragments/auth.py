"""Authentication and owner identity utilities."""

import hashlib
from dataclasses import dataclass
from typing import Optional, Union

import bcrypt
from fastapi import Request

from common.logging_config import get_logger
from fragments.exceptions import InvalidCredentialsError

logger = get_logger(__name__)


def hash_password(password: str) -> str:
    """
    Hash a password using bcrypt.

    Args:
        password: Plain text password to hash

    Returns:
        Bcrypt hash of the password
    """
    password_bytes = password.encode('utf-8')
    salt = bcrypt.gensalt()
    hashed = bcrypt.hashpw(password_bytes, salt)
    return hashed.decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify a password against a bcrypt hash.

    Args:
        password: Plain text password to verify
        password_hash: Bcrypt hash to verify against

    Returns:
        True if password matches hash, False otherwise (including malformed hashes)
    """
    password_bytes = password.encode('utf-8')
    hash_bytes = password_hash.encode('utf-8')
    try:
        return bcrypt.checkpw(password_bytes, hash_bytes)
    except ValueError:
        logger.warning("Malformed bcrypt hash in user file")
        return False


def hash_email(email: str) -> str:
    """
    Derive a stable owner id from an email address (SHA-256 hex digest).
    """
    return hashlib.sha256(email.encode('utf-8')).hexdigest()


@dataclass(frozen=True)
class BasicPrincipal:
    """
    Principal produced by HTTP Basic authentication.
    """
    email: str


@dataclass(frozen=True)
class TokenPrincipal:
    """
    Principal produced by a verified bearer token.
    """
    subject: str
    email: Optional[str] = None


Principal = Union[BasicPrincipal, TokenPrincipal]


def _resolve_basic(principal: BasicPrincipal) -> str:
    return hash_email(principal.email) if principal.email else ""


def _resolve_token(principal: TokenPrincipal) -> str:
    if principal.email:
        return hash_email(principal.email)
    return principal.subject or ""


_RESOLVERS = {
    BasicPrincipal: _resolve_basic,
    TokenPrincipal: _resolve_token,
}


def resolve_owner_id(principal: Optional[Principal]) -> str:
    """
    Map an authenticated principal to its owner id.

    Args:
        principal: BasicPrincipal or TokenPrincipal

    Returns:
        Owner id (hashed email, or the token subject when no email is present)

    Raises:
        InvalidCredentialsError: If the principal is missing, of an unknown
            shape, or resolves to an empty id
    """
    resolver = _RESOLVERS.get(type(principal))
    if resolver is None:
        raise InvalidCredentialsError("Unauthorized")

    owner_id = resolver(principal)
    if not owner_id:
        raise InvalidCredentialsError("Unauthorized")

    return owner_id


async def get_current_owner(request: Request) -> str:
    """
    FastAPI dependency to authenticate the request and extract the owner id.

    The verifier is the process-wide instance stored on app.state at startup.

    Returns:
        owner_id of the authenticated principal

    Raises:
        InvalidCredentialsError: 401 if credentials are missing or invalid
    """
    verifier = request.app.state.verifier
    principal = await verifier.authenticate(request.headers.get("authorization"))
    owner_id = resolve_owner_id(principal)

    request.state.owner_id = owner_id
    logger.debug(f"Authenticated request [owner_id={owner_id}] [strategy={verifier.strategy}]")

    return owner_id

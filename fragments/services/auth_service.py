"""Credential verifiers for the supported authentication strategies."""

import asyncio
import base64
import binascii
from pathlib import Path
from typing import Dict, Optional, Sequence

import jwt

from common.logging_config import get_logger
from fragments.auth import BasicPrincipal, TokenPrincipal, verify_password
from fragments.config import Settings
from fragments.exceptions import InvalidCredentialsError

logger = get_logger(__name__)


def _split_authorization(authorization: Optional[str], scheme: str) -> str:
    if not authorization:
        raise InvalidCredentialsError("Missing authorization header")

    parts = authorization.split(None, 1)
    if len(parts) != 2 or parts[0].lower() != scheme.lower():
        raise InvalidCredentialsError("Invalid authorization header format")

    return parts[1].strip()


def load_user_file(path: Path) -> Dict[str, str]:
    """
    Load an `email:bcrypt-hash` user file.

    Blank lines and lines starting with '#' are ignored.

    Args:
        path: Path of the user file

    Returns:
        Mapping of email to bcrypt hash
    """
    users = {}
    for line_number, line in enumerate(path.read_text(encoding='utf-8').splitlines(), start=1):
        line = line.strip()
        if not line or line.startswith('#'):
            continue
        email, sep, password_hash = line.partition(':')
        if not sep or not email or not password_hash:
            logger.warning(f"Skipping malformed user entry at {path}:{line_number}")
            continue
        users[email] = password_hash
    return users


class BasicAuthVerifier:
    """
    HTTP Basic verifier backed by a bcrypt user file.
    """

    strategy = "http"

    def __init__(self, users: Dict[str, str]):
        self.users = users

    @classmethod
    def from_file(cls, path: Optional[str]) -> "BasicAuthVerifier":
        if not path:
            logger.warning("HTPASSWD_FILE is not set - basic auth will reject every request")
            return cls({})

        users = load_user_file(Path(path))
        logger.info(f"Loaded {len(users)} users from {path}")
        return cls(users)

    async def authenticate(self, authorization: Optional[str]) -> BasicPrincipal:
        encoded = _split_authorization(authorization, "Basic")

        try:
            decoded = base64.b64decode(encoded, validate=True).decode('utf-8')
        except (binascii.Error, UnicodeDecodeError):
            raise InvalidCredentialsError("Invalid basic credentials")

        email, sep, password = decoded.partition(':')
        if not sep or not email or not password:
            raise InvalidCredentialsError("Invalid basic credentials")

        password_hash = self.users.get(email)
        if password_hash is None:
            logger.warning("Basic auth failed: unknown user")
            raise InvalidCredentialsError("Invalid email or password")

        # bcrypt is deliberately slow; keep it off the event loop
        if not await asyncio.to_thread(verify_password, password, password_hash):
            logger.warning("Basic auth failed: invalid password")
            raise InvalidCredentialsError("Invalid email or password")

        return BasicPrincipal(email=email)


class CognitoTokenVerifier:
    """
    Bearer verifier for JWTs issued by an Amazon Cognito user pool.

    Which token type is accepted (id or access) is configuration.
    """

    strategy = "bearer"

    def __init__(
        self,
        pool_id: Optional[str],
        client_id: Optional[str],
        token_use: str = "id",
        jwks_client=None,
        algorithms: Sequence[str] = ("RS256",),
    ):
        if token_use not in ("id", "access"):
            raise ValueError(f"token_use must be 'id' or 'access', got {token_use!r}")

        self.pool_id = pool_id
        self.client_id = client_id
        self.token_use = token_use
        self.algorithms = list(algorithms)
        self.issuer = None
        self._jwks_client = jwks_client

        if pool_id and client_id:
            region = pool_id.split('_', 1)[0]
            self.issuer = f"https://cognito-idp.{region}.amazonaws.com/{pool_id}"
            if self._jwks_client is None:
                self._jwks_client = jwt.PyJWKClient(f"{self.issuer}/.well-known/jwks.json")
            logger.info(f"Cognito verifier initialized [pool_id={pool_id}] [token_use={token_use}]")
        else:
            logger.warning("AWS_COGNITO_POOL_ID or AWS_COGNITO_CLIENT_ID missing - bearer auth disabled")

    @property
    def configured(self) -> bool:
        return self.issuer is not None

    def _decode(self, token: str) -> dict:
        signing_key = self._jwks_client.get_signing_key_from_jwt(token)
        options = {"require": ["exp", "iss", "sub", "token_use"]}

        if self.token_use == "id":
            return jwt.decode(
                token,
                signing_key.key,
                algorithms=self.algorithms,
                issuer=self.issuer,
                audience=self.client_id,
                options=options,
            )

        return jwt.decode(
            token,
            signing_key.key,
            algorithms=self.algorithms,
            issuer=self.issuer,
            options={**options, "verify_aud": False},
        )

    async def authenticate(self, authorization: Optional[str]) -> TokenPrincipal:
        token = _split_authorization(authorization, "Bearer")

        if not self.configured:
            raise InvalidCredentialsError("Bearer authentication is not configured")

        try:
            # JWKS lookups may hit the network
            claims = await asyncio.to_thread(self._decode, token)
        except jwt.PyJWTError as e:
            logger.warning(f"Token verification failed: {e}")
            raise InvalidCredentialsError("Invalid token")

        if claims.get("token_use") != self.token_use:
            logger.warning(f"Token rejected: token_use={claims.get('token_use')} expected={self.token_use}")
            raise InvalidCredentialsError("Invalid token")

        if self.token_use == "access" and claims.get("client_id") != self.client_id:
            logger.warning("Token rejected: client_id mismatch")
            raise InvalidCredentialsError("Invalid token")

        return TokenPrincipal(subject=claims["sub"], email=claims.get("email"))


def create_verifier(settings: Settings):
    """
    Build the credential verifier selected by AUTH_STRATEGY.

    Args:
        settings: Settings snapshot

    Returns:
        BasicAuthVerifier or CognitoTokenVerifier
    """
    if settings.auth_strategy == "http":
        return BasicAuthVerifier.from_file(settings.htpasswd_file)

    if settings.auth_strategy == "bearer":
        return CognitoTokenVerifier(
            pool_id=settings.cognito_pool_id,
            client_id=settings.cognito_client_id,
            token_use=settings.cognito_token_use,
        )

    raise ValueError(f"Unknown AUTH_STRATEGY: {settings.auth_strategy!r}")

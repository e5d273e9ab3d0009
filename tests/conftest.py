"""Shared pytest fixtures for all tests."""

import base64

import bcrypt
import pytest
from fastapi.testclient import TestClient

from fragments.main import create_app
from fragments.services.auth_service import BasicAuthVerifier
from fragments.storage.memory import MemoryBackend


USERS = {
    "user1@email.com": "password1",
    "user2@email.com": "password2",
}


def basic_auth_header(email: str, password: str) -> dict:
    """
    Build an HTTP Basic Authorization header.
    """
    token = base64.b64encode(f"{email}:{password}".encode('utf-8')).decode('ascii')
    return {"Authorization": f"Basic {token}"}


@pytest.fixture(scope="session")
def user_hashes():
    """
    Bcrypt hashes for the test users (low cost factor to keep tests fast).
    """
    return {
        email: bcrypt.hashpw(password.encode('utf-8'), bcrypt.gensalt(rounds=4)).decode('utf-8')
        for email, password in USERS.items()
    }


@pytest.fixture
def htpasswd_file(tmp_path, user_hashes):
    """
    Write the test users to an `email:hash` file.
    """
    path = tmp_path / '.htpasswd'
    lines = ["# test users"] + [f"{email}:{password_hash}" for email, password_hash in user_hashes.items()]
    path.write_text("\n".join(lines) + "\n")
    return path


@pytest.fixture
def backend():
    """Fresh in-memory storage backend."""
    return MemoryBackend()


@pytest.fixture
def basic_verifier(user_hashes):
    """Basic auth verifier that knows the test users."""
    return BasicAuthVerifier(dict(user_hashes))


@pytest.fixture
def client(backend, basic_verifier):
    """Create FastAPI test client backed by in-memory storage."""
    app = create_app(backend=backend, verifier=basic_verifier)
    return TestClient(app)


@pytest.fixture
def users():
    """Plain-text passwords of the test users."""
    return dict(USERS)


@pytest.fixture
def make_basic_auth():
    """Factory for HTTP Basic Authorization headers."""
    return basic_auth_header


@pytest.fixture
def user1_auth():
    return basic_auth_header("user1@email.com", USERS["user1@email.com"])


@pytest.fixture
def user2_auth():
    return basic_auth_header("user2@email.com", USERS["user2@email.com"])

import os
import tempfile

# Must be set before the app is imported: settings are read once and /uploads is mounted at import time
os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="mapdesk-uploads-"))
os.environ.setdefault("AUTH_PROVIDER_URL", "https://test-project.supabase.co")

import base64
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import jwt as pyjwt
import pytest
from cryptography.hazmat.backends import default_backend
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

import app.core.auth
from app.core.config import settings
from app.db.base import Base
from app.db.session import get_db
from app.main import app as fastapi_app
import app.models  # noqa: F401


# Use a SQLite file database for testing
SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False}
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db_session():
    """Create a fresh database for each test."""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db_session):
    """Create a test client with database dependency override."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    fastapi_app.dependency_overrides[get_db] = override_get_db
    client = TestClient(fastapi_app)
    yield client
    fastapi_app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def reset_jwks_cache():
    """Each test starts without a cached JWKS."""
    app.core.auth._jwks_cache = None
    app.core.auth._jwks_cache_time = 0
    yield
    app.core.auth._jwks_cache = None
    app.core.auth._jwks_cache_time = 0


# Test JWT key pair (generated once)
_test_private_key = rsa.generate_private_key(
    public_exponent=65537,
    key_size=2048,
    backend=default_backend()
)
_test_public_key = _test_private_key.public_key()


def _create_test_jwks(public_key, kid="test-key-id"):
    """Create a test JWKS structure from a public key."""
    public_numbers = public_key.public_numbers()

    def int_to_base64url(n):
        byte_length = (n.bit_length() + 7) // 8
        n_bytes = n.to_bytes(byte_length, 'big')
        b64 = base64.urlsafe_b64encode(n_bytes).decode('utf-8')
        return b64.rstrip('=')

    return {
        "keys": [
            {
                "kty": "RSA",
                "kid": kid,
                "use": "sig",
                "alg": "RS256",
                "n": int_to_base64url(public_numbers.n),
                "e": int_to_base64url(public_numbers.e),
            }
        ]
    }


def _create_test_token(
    private_key,
    sub,
    email="test@example.com",
    exp=None,
    aud=None,
    iss=None,
    kid="test-key-id",
    app_metadata=None,
):
    """Create a test JWT token with the given claims."""
    if exp is None:
        exp = int((datetime.now(timezone.utc) + timedelta(hours=1)).timestamp())

    claims = {
        "sub": sub,
        "email": email,
        "aud": aud or settings.auth_jwt_audience,
        "iss": iss or settings.auth_issuer,
        "exp": exp,
        "iat": int(datetime.now(timezone.utc).timestamp()),
    }
    if app_metadata is not None:
        claims["app_metadata"] = app_metadata

    private_pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption()
    ).decode('utf-8')

    headers = {"kid": kid, "alg": "RS256", "typ": "JWT"}

    return pyjwt.encode(claims, private_pem, algorithm="RS256", headers=headers)


# Default test provider UIDs (valid UUIDs for external_auth_uid)
TEST_AUTH_UID_1 = "550e8400-e29b-41d4-a716-446655440000"
TEST_AUTH_UID_2 = "550e8400-e29b-41d4-a716-446655440001"


@pytest.fixture
def test_jwks():
    return _create_test_jwks(_test_public_key)


@pytest.fixture
def mock_jwks(test_jwks):
    """Fixture that mocks JWKS so JWT verification uses the test key."""
    with patch("app.core.auth.fetch_jwks", return_value=test_jwks):
        yield test_jwks


@pytest.fixture
def create_test_token():
    """Fixture that provides a function to create test JWT tokens. sub must be a valid UUID."""
    def _create(sub=TEST_AUTH_UID_1, email="test@example.com", **kwargs):
        return _create_test_token(_test_private_key, sub=sub, email=email, **kwargs)
    return _create

"""Shared pytest fixtures for test suite."""

import base64
import os
import time
from typing import Optional
from unittest.mock import MagicMock

# Settings validate required secrets at import time of the app modules
os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_ANON_KEY", "test-anon-key")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "test-service-key")
# Route handlers are called directly with mock requests
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

import pytest  # noqa: E402
from cryptography.hazmat.backends import default_backend  # noqa: E402
from cryptography.hazmat.primitives import serialization  # noqa: E402
from cryptography.hazmat.primitives.asymmetric import rsa  # noqa: E402
from jose import jwt  # noqa: E402

# =============================================================================
# RSA Key Fixtures (for RS256 JWT signing/verification)
# =============================================================================


@pytest.fixture(scope="session")
def rsa_key_pair():
    """
    Generate RSA key pair for testing RS256 JWTs.

    Session-scoped for efficiency - keys are expensive to generate.
    """
    private_key = rsa.generate_private_key(
        public_exponent=65537, key_size=2048, backend=default_backend()
    )
    return private_key, private_key.public_key()


@pytest.fixture(scope="session")
def rsa_private_key_pem(rsa_key_pair):
    private_key, _ = rsa_key_pair
    return private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )


@pytest.fixture(scope="session")
def jwks_key_id() -> str:
    return "test-key-id-001"


@pytest.fixture(scope="session")
def test_jwks(rsa_key_pair, jwks_key_id):
    """JWKS built from the test public key, in Supabase's endpoint format."""
    _, public_key = rsa_key_pair
    public_numbers = public_key.public_numbers()

    def int_to_base64url(value: int, length: int) -> str:
        value_bytes = value.to_bytes(length, byteorder="big")
        return base64.urlsafe_b64encode(value_bytes).rstrip(b"=").decode("ascii")

    return {
        "keys": [
            {
                "kty": "RSA",
                "use": "sig",
                "alg": "RS256",
                "kid": jwks_key_id,
                "n": int_to_base64url(public_numbers.n, 256),
                "e": int_to_base64url(public_numbers.e, 3),
            }
        ]
    }


# =============================================================================
# JWT Token Fixtures
# =============================================================================


@pytest.fixture
def valid_jwt_claims():
    """Standard valid JWT claims for a Supabase authenticated user."""
    return {
        "sub": "auth-user-uuid-12345",
        "email": "testuser@example.com",
        "aud": "authenticated",
        "role": "authenticated",
        "iat": int(time.time()),
        "exp": int(time.time()) + 3600,
    }


def create_test_jwt(claims: dict, private_key_pem: bytes, kid: Optional[str]) -> str:
    headers = {"kid": kid} if kid else None
    return jwt.encode(claims, private_key_pem, algorithm="RS256", headers=headers)


@pytest.fixture
def valid_jwt_token(valid_jwt_claims, rsa_private_key_pem, jwks_key_id):
    return create_test_jwt(valid_jwt_claims, rsa_private_key_pem, jwks_key_id)


@pytest.fixture
def expired_jwt_token(valid_jwt_claims, rsa_private_key_pem, jwks_key_id):
    claims = valid_jwt_claims.copy()
    claims["exp"] = int(time.time()) - 3600
    claims["iat"] = int(time.time()) - 7200
    return create_test_jwt(claims, rsa_private_key_pem, jwks_key_id)


@pytest.fixture
def wrong_audience_jwt_token(valid_jwt_claims, rsa_private_key_pem, jwks_key_id):
    claims = valid_jwt_claims.copy()
    claims["aud"] = "anon"
    return create_test_jwt(claims, rsa_private_key_pem, jwks_key_id)


# =============================================================================
# JWKS Cache Reset Fixture
# =============================================================================


@pytest.fixture(autouse=True)
def reset_jwks_cache():
    """Reset JWKS cache before each test to ensure isolation."""
    from trust_engine.core.auth import _jwks_cache

    _jwks_cache.invalidate()
    yield
    _jwks_cache.invalidate()


# =============================================================================
# Mock Supabase Client
# =============================================================================


@pytest.fixture
def mock_supabase():
    """Mock Supabase client; route tables with setup_table_router()."""
    return MagicMock()


def setup_table_router(mock_supabase, table_mocks: dict) -> None:
    """Configure table-specific mock routing."""
    mock_supabase.table.side_effect = lambda name: table_mocks.get(name, MagicMock())


# =============================================================================
# Row Factories
# =============================================================================

REPORTER_ID = "11111111-1111-4111-8111-111111111111"
OWNER_ID = "22222222-2222-4222-8222-222222222222"
ADMIN_ID = "33333333-3333-4333-8333-333333333333"
CREATOR_ID = "44444444-4444-4444-8444-444444444444"
CONTENT_ID = "55555555-5555-4555-8555-555555555555"
MESSAGE_ID = "66666666-6666-4666-8666-666666666666"
REPORT_ID = "77777777-7777-4777-8777-777777777777"


def make_report_row(**overrides) -> dict:
    """A pending content report row as PostgREST returns it."""
    row = {
        "id": REPORT_ID,
        "reporter_id": REPORTER_ID,
        "report_type": "content",
        "target_id": CONTENT_ID,
        "target_content_id": CONTENT_ID,
        "target_creator_id": None,
        "target_message_id": None,
        "target_user_id": None,
        "reason": "harassment",
        "description": "Abusive caption",
        "evidence_urls": [],
        "status": "pending",
        "priority": 5,
        "action": None,
        "action_note": None,
        "reviewed_by": None,
        "reviewed_at": None,
        "created_at": "2026-03-01T12:00:00+00:00",
        "updated_at": "2026-03-01T12:00:00+00:00",
    }
    row.update(overrides)
    return row


def make_suspension_row(**overrides) -> dict:
    row = {
        "id": "suspension-1",
        "user_id": OWNER_ID,
        "type": "temporary",
        "reason": "Report: harassment",
        "report_id": REPORT_ID,
        "starts_at": "2026-03-01T12:00:00+00:00",
        "ends_at": "2026-03-08T12:00:00+00:00",
        "suspended_by": ADMIN_ID,
        "is_active": True,
        "created_at": "2026-03-01T12:00:00+00:00",
    }
    row.update(overrides)
    return row


def make_credibility_row(**overrides) -> dict:
    row = {
        "user_id": REPORTER_ID,
        "total_reports": 0,
        "valid_reports": 0,
        "false_reports": 0,
        "score": 50,
        "is_trusted": False,
        "is_flagged": False,
        "updated_at": "2026-03-01T12:00:00+00:00",
    }
    row.update(overrides)
    return row

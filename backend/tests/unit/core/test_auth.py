"""Unit tests for Supabase JWT validation (trust_engine/core/auth.py)."""

import time
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi import HTTPException
from jose import JWTError

from trust_engine.core.auth import (
    AuthOptionalUser,
    _jwks_cache,
    decode_supabase_token,
    get_signing_key,
    require_auth_from_state,
)


class TestJWKSCache:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_fetches_once_then_serves_cache(self, test_jwks) -> None:
        with patch.object(_jwks_cache, "_fetch_keys", new_callable=AsyncMock) as mock_fetch:
            mock_fetch.return_value = test_jwks

            assert await _jwks_cache.get_keys() == test_jwks
            assert await _jwks_cache.get_keys() == test_jwks

            mock_fetch.assert_called_once()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_stale_cache_refetches(self, test_jwks) -> None:
        _jwks_cache._keys = {"keys": []}
        _jwks_cache._fetched_at = time.time() - 2 * _jwks_cache.TTL

        with patch.object(_jwks_cache, "_fetch_keys", new_callable=AsyncMock) as mock_fetch:
            mock_fetch.return_value = test_jwks

            assert await _jwks_cache.get_keys() == test_jwks

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_fetch_failure_propagates_503(self) -> None:
        with patch.object(_jwks_cache, "_fetch_keys", new_callable=AsyncMock) as mock_fetch:
            mock_fetch.side_effect = HTTPException(status_code=503, detail="Failed to fetch JWKS")

            with pytest.raises(HTTPException) as exc_info:
                await _jwks_cache.get_keys()

            assert exc_info.value.status_code == 503


class TestGetSigningKey:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_returns_matching_key_by_kid(self, valid_jwt_token, test_jwks) -> None:
        with patch.object(_jwks_cache, "get_keys", new_callable=AsyncMock) as mock_keys:
            mock_keys.return_value = test_jwks

            key = await get_signing_key(valid_jwt_token)

            assert key["kid"] == "test-key-id-001"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_falls_back_to_first_key(self, valid_jwt_token, test_jwks) -> None:
        other = {"keys": [{**test_jwks["keys"][0], "kid": "rotated"}]}
        with patch.object(_jwks_cache, "get_keys", new_callable=AsyncMock) as mock_keys:
            mock_keys.return_value = other

            key = await get_signing_key(valid_jwt_token)

            assert key["kid"] == "rotated"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_no_keys_is_401(self, valid_jwt_token) -> None:
        with patch.object(_jwks_cache, "get_keys", new_callable=AsyncMock) as mock_keys:
            mock_keys.return_value = {"keys": []}

            with pytest.raises(HTTPException) as exc_info:
                await get_signing_key(valid_jwt_token)

            assert exc_info.value.status_code == 401

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_malformed_token_is_401(self, test_jwks) -> None:
        with patch.object(_jwks_cache, "get_keys", new_callable=AsyncMock) as mock_keys:
            mock_keys.return_value = test_jwks

            with pytest.raises(HTTPException) as exc_info:
                await get_signing_key("not-a-jwt")

            assert exc_info.value.detail == "Invalid token header"


class TestDecodeSupabaseToken:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_decodes_valid_token(self, valid_jwt_token, test_jwks, valid_jwt_claims) -> None:
        with patch.object(_jwks_cache, "get_keys", new_callable=AsyncMock) as mock_keys:
            mock_keys.return_value = test_jwks

            payload = await decode_supabase_token(valid_jwt_token)

            assert payload["sub"] == valid_jwt_claims["sub"]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_expired_token_rejected(self, expired_jwt_token, test_jwks) -> None:
        with patch.object(_jwks_cache, "get_keys", new_callable=AsyncMock) as mock_keys:
            mock_keys.return_value = test_jwks

            with pytest.raises(JWTError):
                await decode_supabase_token(expired_jwt_token)

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_wrong_audience_rejected(self, wrong_audience_jwt_token, test_jwks) -> None:
        with patch.object(_jwks_cache, "get_keys", new_callable=AsyncMock) as mock_keys:
            mock_keys.return_value = test_jwks

            with pytest.raises(JWTError):
                await decode_supabase_token(wrong_audience_jwt_token)


class TestRequireAuthFromState:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_returns_user_from_state(self) -> None:
        request = MagicMock()
        request.state.user = AuthOptionalUser(
            auth_id="auth-1", email="a@example.com", is_authenticated=True
        )

        user = await require_auth_from_state(request)

        assert user.auth_id == "auth-1"
        assert user.email == "a@example.com"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_anonymous_is_401(self) -> None:
        request = MagicMock()
        request.state.user = AuthOptionalUser(is_authenticated=False)
        request.state.token_error = None

        with pytest.raises(HTTPException) as exc_info:
            await require_auth_from_state(request)

        assert exc_info.value.status_code == 401
        assert exc_info.value.detail == "Authentication required"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_token_error_is_surfaced(self) -> None:
        request = MagicMock()
        request.state.user = AuthOptionalUser(is_authenticated=False)
        request.state.token_error = "Signature has expired."

        with pytest.raises(HTTPException) as exc_info:
            await require_auth_from_state(request)

        assert "Signature has expired." in exc_info.value.detail

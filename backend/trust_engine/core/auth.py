"""
Authentication module for Supabase JWT validation.

Tokens are validated once by JWTValidationMiddleware (see middleware.py),
which stores the result on request.state. Route dependencies read it from
there instead of re-validating.

The engine never authenticates on its own behalf: it only trusts the
auth_id handed over by Supabase Auth and maps it to an internal user id.
"""

import asyncio
import logging
import time
from typing import Optional

import httpx
from fastapi import HTTPException, Request, status
from jose import JWTError, jwt
from pydantic import BaseModel

from trust_engine.core.config import get_settings

logger = logging.getLogger(__name__)


class AuthUser(BaseModel):
    """Authenticated user context from JWT token."""

    auth_id: str  # Supabase auth.uid()
    email: str


class AuthOptionalUser(BaseModel):
    """Request user that may be anonymous (set by middleware)."""

    auth_id: Optional[str] = None
    email: Optional[str] = None
    is_authenticated: bool = False


class JWKSCache:
    """JWKS keys cached for TTL seconds; concurrent misses share one fetch."""

    TTL: int = 3600

    def __init__(self) -> None:
        self._keys: Optional[dict] = None
        self._fetched_at: Optional[float] = None
        self._lock: Optional[asyncio.Lock] = None  # Lazy: needs a running loop

    def _is_fresh(self) -> bool:
        return (
            self._keys is not None
            and self._fetched_at is not None
            and time.time() - self._fetched_at < self.TTL
        )

    async def get_keys(self) -> dict:
        if self._is_fresh():
            assert self._keys is not None
            return self._keys

        if self._lock is None:
            self._lock = asyncio.Lock()

        async with self._lock:
            if not self._is_fresh():
                self._keys = await self._fetch_keys()
                self._fetched_at = time.time()
        assert self._keys is not None
        return self._keys

    async def _fetch_keys(self) -> dict:
        """Fetch JWKS from Supabase's well-known endpoint."""
        jwks_url = f"{get_settings().supabase_url}/auth/v1/.well-known/jwks.json"
        try:
            async with httpx.AsyncClient() as client:
                response = await client.get(jwks_url, timeout=10.0)
                response.raise_for_status()
                return response.json()
        except httpx.HTTPError as e:
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail=f"Failed to fetch JWKS: {str(e)}",
            )

    def invalidate(self) -> None:
        self._keys = None
        self._fetched_at = None


_jwks_cache = JWKSCache()


async def get_signing_key(token: str) -> dict:
    """Get the JWKS key matching the token's key ID (kid)."""
    jwks = await _jwks_cache.get_keys()

    try:
        kid = jwt.get_unverified_header(token).get("kid")
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token header",
            headers={"WWW-Authenticate": "Bearer"},
        )

    keys = jwks.get("keys", [])
    for key in keys:
        if key.get("kid") == kid:
            return key

    # Some Supabase projects do not set kid
    if keys:
        return keys[0]

    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="No matching signing key found",
        headers={"WWW-Authenticate": "Bearer"},
    )


async def decode_supabase_token(token: str) -> dict:
    """Decode and validate a Supabase JWT (audience "authenticated")."""
    signing_key = await get_signing_key(token)
    return jwt.decode(
        token,
        signing_key,
        algorithms=["RS256", "ES256"],
        audience="authenticated",
    )


async def require_auth_from_state(request: Request) -> AuthUser:
    """
    Require an authenticated user from request.state (populated by middleware).

    Raises 401 if the request carried no valid token.
    """
    user = getattr(request.state, "user", None)

    if user is None or not user.is_authenticated:
        token_error = getattr(request.state, "token_error", None)
        detail = "Authentication required"
        if token_error:
            detail = f"Authentication failed: {token_error}"

        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )

    return AuthUser(auth_id=user.auth_id, email=user.email or "")

# =============================================================================
# app/auth/dependencies.py - FastAPI Auth Dependencies
# =============================================================================
# Resolves the calling user from a Supabase access token.
#
# Supports both:
# - ES256 (new Supabase JWT signing keys) via JWKS
# - HS256 (legacy Supabase JWT secret) as fallback
#
# Usage:
#   from app.auth import get_current_user
#
#   @router.get("/protected")
#   async def protected(user: Principal = Depends(get_current_user)):
#       return {"user_id": user.id}
# =============================================================================

import logging
import time
from typing import Optional
from uuid import UUID

import httpx
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError, ExpiredSignatureError
from pydantic import ValidationError

from app.config import settings
from app.auth.models import TokenPayload
from core.models.video import Principal
from core.ports import IdentityProvider

logger = logging.getLogger(__name__)

# HTTP Bearer token extractor
security = HTTPBearer()
security_optional = HTTPBearer(auto_error=False)

# Cache for JWKS keys
_jwks_cache: dict = {}
_jwks_cache_time: float = 0
JWKS_CACHE_TTL = 3600  # 1 hour


class InvalidTokenError(Exception):
    """Raised when a bearer token cannot be verified."""


def _get_jwks_url() -> str:
    """Get the JWKS URL from Supabase URL."""
    supabase_url = settings.SUPABASE_URL.rstrip('/')
    return f"{supabase_url}/auth/v1/.well-known/jwks.json"


def _fetch_jwks() -> dict:
    """Fetch JWKS from Supabase with caching."""
    global _jwks_cache, _jwks_cache_time

    current_time = time.time()

    # Return cached if valid
    if _jwks_cache and (current_time - _jwks_cache_time) < JWKS_CACHE_TTL:
        return _jwks_cache

    try:
        jwks_url = _get_jwks_url()
        response = httpx.get(jwks_url, timeout=10)
        response.raise_for_status()
        _jwks_cache = response.json()
        _jwks_cache_time = current_time
        logger.debug(f"Fetched JWKS from {jwks_url}")
        return _jwks_cache
    except (httpx.HTTPError, ValueError) as e:
        logger.warning(f"Failed to fetch JWKS: {e}")
        # Return cached even if expired, as fallback
        if _jwks_cache:
            return _jwks_cache
        return {"keys": []}


def _get_signing_key(token: str) -> tuple[str | dict, str]:
    """
    Get the appropriate signing key for a token.

    Returns:
        Tuple of (key, algorithm) to use for verification
    """
    try:
        unverified_header = jwt.get_unverified_header(token)
    except JWTError:
        return settings.SUPABASE_JWT_SECRET, "HS256"

    alg = unverified_header.get("alg", "HS256")
    kid = unverified_header.get("kid")

    if alg == "HS256":
        return settings.SUPABASE_JWT_SECRET, "HS256"

    # For ES256 or other algorithms, use JWKS
    if kid:
        for key in _fetch_jwks().get("keys", []):
            if key.get("kid") == kid:
                return key, alg

    logger.warning(f"Could not find key for alg={alg}, kid={kid}, falling back to HS256")
    return settings.SUPABASE_JWT_SECRET, "HS256"


def decode_access_token(token: str) -> Principal:
    """
    Verify a Supabase access token and return its principal.

    Raises:
        InvalidTokenError: If the token is expired, badly signed or malformed
    """
    try:
        signing_key, algorithm = _get_signing_key(token)
        payload = TokenPayload.model_validate(
            jwt.decode(
                token,
                signing_key,
                algorithms=[algorithm],
                audience="authenticated",
            )
        )
    except ExpiredSignatureError as e:
        raise InvalidTokenError("Token has expired") from e
    except JWTError as e:
        raise InvalidTokenError(f"Invalid token: {e}") from e
    except ValidationError as e:
        raise InvalidTokenError("Invalid token: missing required claims") from e

    try:
        user_id = str(UUID(payload.sub))
    except ValueError as e:
        raise InvalidTokenError("Invalid token: malformed user ID") from e

    return Principal(id=user_id, email=payload.email)


class JWTIdentityProvider(IdentityProvider):
    """
    IdentityProvider for one request's bearer token.

    An absent or invalid token resolves to no principal.
    """

    def __init__(self, token: str | None):
        self.token = token

    def get_current_principal(self) -> Principal | None:
        if not self.token:
            return None
        try:
            principal = decode_access_token(self.token)
        except InvalidTokenError as e:
            logger.warning(f"JWT validation failed: {e}")
            return None

        logger.debug(f"Authenticated user: {principal.id}")
        return principal


def get_identity_provider(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security_optional)
) -> IdentityProvider:
    """Build the identity provider for the current request."""
    return JWTIdentityProvider(credentials.credentials if credentials else None)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security)
) -> Principal:
    """
    Extract and validate user from Supabase JWT token.

    Raises:
        HTTPException: 401 if token is invalid or expired
    """
    try:
        principal = decode_access_token(credentials.credentials)
    except InvalidTokenError as e:
        logger.warning(f"JWT validation failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        )

    logger.debug(f"Authenticated user: {principal.id}")
    return principal


# =============================================================================
# app/auth/routes.py - Authentication Routes
# =============================================================================
# API endpoints for authentication-related operations.
#
# Note: Actual signup/login is handled by Supabase Auth client-side.
# These routes are for getting user info after authentication.
# =============================================================================

import logging

from fastapi import APIRouter, Depends
from starlette.concurrency import run_in_threadpool

from app.auth.dependencies import get_current_user
from app.auth.models import UserResponse
from app.dependencies import CatalogReaderDep
from core.models.results import ErrorKind
from core.models.video import Principal

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(
    reader: CatalogReaderDep,
    user: Principal = Depends(get_current_user),
) -> UserResponse:
    """
    Get the current authenticated user's profile.

    Falls back to the token's identity when the profile row is missing or
    cannot be loaded.

    Raises:
        401: If not authenticated
    """
    result = await run_in_threadpool(reader.get_owner_profile, user.id)

    if result.success:
        return UserResponse(
            id=user.id,
            email=result.profile.email or user.email,
            display_name=result.profile.display_name,
            has_profile=True,
        )

    if result.error.kind != ErrorKind.NOT_FOUND:
        logger.warning(f"Could not fetch user profile: {result.error.message}")

    # User exists in auth but not yet in profiles
    return UserResponse(id=user.id, email=user.email)


@router.get("/verify")
async def verify_token(
    user: Principal = Depends(get_current_user)
) -> dict:
    """
    Verify that the current token is valid.

    Raises:
        401: If token is invalid or expired
    """
    return {
        "valid": True,
        "user_id": user.id,
        "email": user.email
    }

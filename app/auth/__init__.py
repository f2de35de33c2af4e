# =============================================================================
# app/auth/__init__.py - Authentication Module
# =============================================================================
# Provides JWT-based authentication using Supabase Auth.
#
# Usage:
#   from app.auth import get_current_user
#
#   @router.get("/protected")
#   async def protected(user: Principal = Depends(get_current_user)):
#       return {"user_id": user.id}
# =============================================================================

from app.auth.dependencies import (
    JWTIdentityProvider,
    get_current_user,
    get_identity_provider,
)
from app.auth.models import UserResponse

__all__ = [
    "JWTIdentityProvider",
    "get_current_user",
    "get_identity_provider",
    "UserResponse",
]

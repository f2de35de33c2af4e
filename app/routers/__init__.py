# =============================================================================
# app/routers/ - API Route Definitions
# =============================================================================
# This package contains FastAPI routers organized by feature:
# - health.py: Health check endpoints
# - videos.py: Video upload, listing and detail endpoints
#
# Each router is mounted in main.py with a URL prefix.
# =============================================================================

from . import health
from . import videos

__all__ = [
    "health",
    "videos",
]

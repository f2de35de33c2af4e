# =============================================================================
# core/models/ - Pydantic Data Models
# =============================================================================
# This package contains the schemas shared by the pipeline and the API:
# - video.py: MediaAsset, OwnerProfile, Principal, VideoFile
# - results.py: success/error result types returned by every operation
#
# These models define the "contract" between API and clients.
# =============================================================================

# -----------------------------------------------------------------------------
# Video Models - Catalog records and upload inputs
# -----------------------------------------------------------------------------
from .video import (
    MediaAsset,
    OwnerProfile,
    PLACEHOLDER_PROFILE,
    Principal,
    VideoFile,
    VideoWithProfile,
)

# -----------------------------------------------------------------------------
# Result Models - Uniform success/failure outcomes
# -----------------------------------------------------------------------------
from .results import (
    ErrorKind,
    OperationError,
    ProfileResult,
    UploadResult,
    VideoListResult,
    VideoResult,
)

__all__ = [
    # Video
    "MediaAsset",
    "OwnerProfile",
    "PLACEHOLDER_PROFILE",
    "Principal",
    "VideoFile",
    "VideoWithProfile",
    # Results
    "ErrorKind",
    "OperationError",
    "ProfileResult",
    "UploadResult",
    "VideoListResult",
    "VideoResult",
]

# =============================================================================
# core/models/results.py - Operation Result Schemas
# =============================================================================
# Every public pipeline operation returns one of these instead of raising:
#
#   result = pipeline.upload(video_file, "Demo", "", principal)
#   if result.success:
#       print(result.video_url)
#   else:
#       print(result.error.kind, result.error.message)
#
# Presentation code can render result.error.message directly.
# =============================================================================

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field

from .video import OwnerProfile, VideoWithProfile


class ErrorKind(str, Enum):
    """
    Failure categories for pipeline operations.

    profile_fetch_failed never fails an operation; list operations report it
    as a warning and fall back to the placeholder profile.
    """
    UNAUTHENTICATED = "unauthenticated"
    INVALID_FILE_TYPE = "invalid_file_type"
    FILE_TOO_LARGE = "file_too_large"
    STORAGE_WRITE_FAILED = "storage_write_failed"
    METADATA_WRITE_FAILED = "metadata_write_failed"
    METADATA_READ_FAILED = "metadata_read_failed"
    NOT_FOUND = "not_found"
    PROFILE_FETCH_FAILED = "profile_fetch_failed"
    CANCELLED = "cancelled"


class OperationError(BaseModel):
    """Why an operation failed."""

    kind: ErrorKind = Field(
        ...,
        description="Failure category"
    )

    message: str = Field(
        ...,
        description="Human-readable message, safe to show to users"
    )

    suggestion: str | None = Field(
        default=None,
        description="How to fix or work around the failure"
    )

    # Set when a blob may exist without a metadata record
    storage_path: str | None = Field(
        default=None,
        description="Storage key left behind by a partial upload"
    )

    cause: str | None = Field(
        default=None,
        description="Underlying collaborator error, for diagnostics"
    )


class UploadResult(BaseModel):
    """Outcome of UploadPipeline.upload()."""

    success: bool
    video_url: str | None = None
    storage_path: str | None = None
    error: OperationError | None = None

    @classmethod
    def ok(cls, video_url: str, storage_path: str) -> "UploadResult":
        return cls(success=True, video_url=video_url, storage_path=storage_path)

    @classmethod
    def fail(cls, error: OperationError) -> "UploadResult":
        return cls(success=False, error=error, storage_path=error.storage_path)


class VideoListResult(BaseModel):
    """Outcome of CatalogReader list operations."""

    success: bool
    videos: list[VideoWithProfile] = Field(default_factory=list)
    # Non-fatal problems, e.g. the profile lookup failing
    warnings: list[str] = Field(default_factory=list)
    error: OperationError | None = None

    @classmethod
    def ok(
        cls,
        videos: list[VideoWithProfile],
        warnings: list[str] | None = None,
    ) -> "VideoListResult":
        return cls(success=True, videos=videos, warnings=warnings or [])

    @classmethod
    def fail(cls, error: OperationError) -> "VideoListResult":
        return cls(success=False, error=error)


class VideoResult(BaseModel):
    """Outcome of CatalogReader.get_by_id()."""

    success: bool
    video: VideoWithProfile | None = None
    error: OperationError | None = None

    @classmethod
    def ok(cls, video: VideoWithProfile) -> "VideoResult":
        return cls(success=True, video=video)

    @classmethod
    def fail(cls, error: OperationError) -> "VideoResult":
        return cls(success=False, error=error)


class ProfileResult(BaseModel):
    """Outcome of CatalogReader.get_owner_profile()."""

    success: bool
    profile: OwnerProfile | None = None
    error: OperationError | None = None

    @classmethod
    def ok(cls, profile: OwnerProfile) -> "ProfileResult":
        return cls(success=True, profile=profile)

    @classmethod
    def fail(cls, error: OperationError) -> "ProfileResult":
        return cls(success=False, error=error)

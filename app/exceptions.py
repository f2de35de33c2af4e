# =============================================================================
# app/exceptions.py - Custom Exceptions and Handlers
# =============================================================================
# Centralized error types for the pipeline and the API.
# Following the principle: "Errors should tell HOW to fix, not just WHAT failed."
#
# The core services raise these internally and convert them to
# OperationError at their public boundary; the routers turn a failed result
# back into an exception so the handlers below render it.
# =============================================================================

from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse

from core.models.results import ErrorKind, OperationError


class VidioException(Exception):
    """
    Base exception for the Vidio API.

    All custom exceptions inherit from this class.
    Provides structured error responses with actionable suggestions.
    """

    kind: ErrorKind | None = None
    default_status: int = 500

    def __init__(
        self,
        message: str,
        code: str = "VIDIO_ERROR",
        status_code: int = 500,
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.suggestion = suggestion
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to API response dict."""
        result = {
            "success": False,
            "detail": self.message,
            "code": self.code,
        }
        if self.suggestion:
            result["suggestion"] = self.suggestion
        if self.details:
            result["details"] = self.details
        return result

    def to_operation_error(self) -> OperationError:
        """Convert to the error carried by operation results."""
        return OperationError(
            kind=self.kind,
            message=self.message,
            suggestion=self.suggestion,
            storage_path=self.details.get("storage_path"),
            cause=self.details.get("error"),
        )

    @classmethod
    def from_operation_error(cls, error: OperationError) -> "VidioException":
        """Rebuild the matching exception for a failed result."""
        exc_class = _EXCEPTIONS_BY_KIND.get(error.kind, VidioException)
        details = {}
        if error.storage_path:
            details["storage_path"] = error.storage_path
        if error.cause:
            details["error"] = error.cause
        exc = VidioException(
            message=error.message,
            code=error.kind.value.upper(),
            status_code=exc_class.default_status,
            suggestion=error.suggestion,
            details=details,
        )
        exc.kind = error.kind
        return exc


# =============================================================================
# Authentication Exceptions
# =============================================================================

class UnauthenticatedError(VidioException):
    """Raised when an operation needs a signed-in user and there is none."""

    kind = ErrorKind.UNAUTHENTICATED
    default_status = 401

    def __init__(self):
        super().__init__(
            message="User not authenticated",
            code="UNAUTHENTICATED",
            status_code=self.default_status,
            suggestion="Sign in and send the access token as a Bearer token",
        )


# =============================================================================
# Upload Validation Exceptions
# =============================================================================

class InvalidFileTypeError(VidioException):
    """Raised when the uploaded file is not an allowed video type."""

    kind = ErrorKind.INVALID_FILE_TYPE
    default_status = 400

    def __init__(self, filename: str, mime_type: str, allowed: list[str]):
        super().__init__(
            message="Only video files are allowed (MP4, MOV, AVI, MPEG)",
            code="INVALID_FILE_TYPE",
            status_code=self.default_status,
            suggestion=f"Only these file types are supported: {', '.join(allowed)}",
            details={"filename": filename, "mime_type": mime_type, "allowed_types": allowed}
        )


class FileTooLargeError(VidioException):
    """Raised when the uploaded file exceeds the size limit."""

    kind = ErrorKind.FILE_TOO_LARGE
    default_status = 413

    def __init__(self, size_bytes: int, max_bytes: int):
        size_mb = size_bytes / (1024 * 1024)
        max_mb = max_bytes / (1024 * 1024)
        super().__init__(
            message=f"File too large: {size_mb:.1f}MB (max: {max_mb:g}MB)",
            code="FILE_TOO_LARGE",
            status_code=self.default_status,
            suggestion=f"Upload a file smaller than {max_mb:g}MB",
            details={"size_bytes": size_bytes, "max_bytes": max_bytes}
        )


# =============================================================================
# Storage Exceptions
# =============================================================================

class StorageWriteError(VidioException):
    """
    Raised when the blob cannot be stored or its public URL resolved.

    storage_path is only reported when the blob was written (the URL lookup
    failed afterwards); a rejected write leaves nothing behind.
    """

    kind = ErrorKind.STORAGE_WRITE_FAILED
    default_status = 502

    def __init__(self, path: str, error: str, blob_stored: bool = False):
        details = {"path": path, "error": error}
        if blob_stored:
            details["storage_path"] = path
        super().__init__(
            message=f"Failed to upload file to storage: {error}",
            code="STORAGE_WRITE_FAILED",
            status_code=self.default_status,
            suggestion="Try again later or contact support if the issue persists",
            details=details
        )


class UploadCancelledError(VidioException):
    """Raised when an upload is cancelled before the blob write finished."""

    kind = ErrorKind.CANCELLED
    default_status = 409

    def __init__(self, path: str):
        super().__init__(
            message="Upload was cancelled",
            code="CANCELLED",
            status_code=self.default_status,
            suggestion="The storage key may hold a partial file; upload again to retry",
            details={"storage_path": path}
        )


# =============================================================================
# Metadata Exceptions
# =============================================================================

class MetadataWriteError(VidioException):
    """
    Raised when the video record cannot be inserted.

    The blob has already been stored at storage_path and is now orphaned.
    """

    kind = ErrorKind.METADATA_WRITE_FAILED
    default_status = 500

    def __init__(self, path: str, error: str):
        super().__init__(
            message=f"Failed to save video details: {error}",
            code="METADATA_WRITE_FAILED",
            status_code=self.default_status,
            suggestion="The uploaded file was stored without a record; upload again or ask an admin to clean it up",
            details={"storage_path": path, "error": error}
        )


class MetadataReadError(VidioException):
    """Raised when video records cannot be fetched."""

    kind = ErrorKind.METADATA_READ_FAILED
    default_status = 500

    def __init__(self, error: str):
        super().__init__(
            message=f"Failed to load videos: {error}",
            code="METADATA_READ_FAILED",
            status_code=self.default_status,
            suggestion="Try again later or contact support if the issue persists",
            details={"error": error}
        )


class VideoNotFoundError(VidioException):
    """Raised when a video ID doesn't exist."""

    kind = ErrorKind.NOT_FOUND
    default_status = 404

    def __init__(self, video_id: str):
        super().__init__(
            message=f"Video not found: {video_id}",
            code="NOT_FOUND",
            status_code=self.default_status,
            suggestion="Check that the video_id is correct",
            details={"video_id": video_id}
        )


class ProfileNotFoundError(VidioException):
    """Raised when a user has no profile row."""

    kind = ErrorKind.NOT_FOUND
    default_status = 404

    def __init__(self, owner_id: str):
        super().__init__(
            message=f"Profile not found: {owner_id}",
            code="NOT_FOUND",
            status_code=self.default_status,
            suggestion="The profile is created at sign-up; check that registration completed",
            details={"owner_id": owner_id}
        )


class ProfileFetchError(VidioException):
    """Raised when owner profiles cannot be fetched."""

    kind = ErrorKind.PROFILE_FETCH_FAILED
    default_status = 502

    def __init__(self, error: str):
        super().__init__(
            message=f"Failed to load user profiles: {error}",
            code="PROFILE_FETCH_FAILED",
            status_code=self.default_status,
            details={"error": error}
        )


_EXCEPTIONS_BY_KIND: dict[ErrorKind, type[VidioException]] = {
    exc_class.kind: exc_class
    for exc_class in (
        UnauthenticatedError,
        InvalidFileTypeError,
        FileTooLargeError,
        StorageWriteError,
        UploadCancelledError,
        MetadataWriteError,
        MetadataReadError,
        VideoNotFoundError,
        ProfileFetchError,
    )
}


# =============================================================================
# Exception Handlers
# =============================================================================

async def vidio_exception_handler(
    request: Request,
    exc: VidioException
) -> JSONResponse:
    """
    Convert VidioException to JSON response.

    Returns structured error with:
    - success: always false
    - detail: Human-readable message
    - code: Machine-readable error code
    - suggestion: How to fix (if available)
    - details: Additional context
    """
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict()
    )


async def validation_exception_handler(
    request: Request,
    exc: Exception
) -> JSONResponse:
    """
    Handle Pydantic validation errors.

    Converts validation errors to user-friendly messages.
    """
    return JSONResponse(
        status_code=422,
        content={
            "success": False,
            "detail": "Validation error",
            "code": "VALIDATION_ERROR",
            "errors": str(exc)
        }
    )

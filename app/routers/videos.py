# =============================================================================
# app/routers/videos.py - Video Upload and Catalog Endpoints
# =============================================================================
# Thin HTTP layer over UploadPipeline and CatalogReader. Failed results are
# re-raised as VidioException so the app's handler renders the JSON error.
# =============================================================================

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, Path, Query, UploadFile, status
from starlette.concurrency import run_in_threadpool

from app.auth import get_identity_provider
from app.dependencies import CatalogReaderDep, UploadPipelineDep
from app.exceptions import VidioException
from core.models.results import UploadResult, VideoListResult, VideoResult
from core.models.video import VideoFile
from core.ports import IdentityProvider

logger = logging.getLogger(__name__)

router = APIRouter()

DEFAULT_CONTENT_TYPE = "application/octet-stream"


# =============================================================================
# Helper Functions
# =============================================================================

def _raise_for_error(result: UploadResult | VideoListResult | VideoResult) -> None:
    """Raise the matching VidioException for a failed result."""
    if not result.success:
        raise VidioException.from_operation_error(result.error)


def _progress_logger(filename: str, step: float = 25.0):
    """Build an on_progress callback that logs every `step` percent."""
    next_mark = step

    def log_progress(percentage: float) -> None:
        nonlocal next_mark
        if percentage >= next_mark:
            logger.info(f"Uploading {filename}: {percentage:.0f}%")
            while next_mark <= percentage:
                next_mark += step

    return log_progress


# =============================================================================
# Endpoints
# =============================================================================

@router.post("", response_model=UploadResult, status_code=status.HTTP_201_CREATED)
async def upload_video(
    file: Annotated[UploadFile, File(description="Video file (MP4, MOV, AVI, MPEG)")],
    title: Annotated[str, Form(min_length=1, max_length=255, description="Video title")],
    pipeline: UploadPipelineDep,
    identity: Annotated[IdentityProvider, Depends(get_identity_provider)],
    description: Annotated[str, Form(max_length=5000, description="Video description")] = "",
):
    """
    Upload a video.

    This endpoint:
    1. Resolves the caller from the bearer token
    2. Validates the file (type, size) before reading it
    3. Streams it to storage under a unique key
    4. Records the video's metadata

    Returns the public URL of the stored video.
    """
    principal = identity.get_current_principal()
    filename = file.filename or "video"
    content_type = file.content_type or DEFAULT_CONTENT_TYPE

    # Reject early, without reading the body, when the declared size is enough
    if file.size is not None:
        try:
            pipeline.validate(VideoFile(filename, content_type, size_bytes=file.size), principal)
        except VidioException as e:
            logger.info(f"Rejected upload {filename!r}: {e.message}")
            raise

    content = await file.read()
    video_file = VideoFile(filename, content_type, content=content)

    result = await run_in_threadpool(
        pipeline.upload,
        video_file,
        title,
        description,
        principal,
        on_progress=_progress_logger(filename),
    )
    _raise_for_error(result)
    return result


@router.get("", response_model=VideoListResult)
def list_videos(
    reader: CatalogReaderDep,
    owner_id: Annotated[str | None, Query(description="Only videos uploaded by this user")] = None,
):
    """
    List videos, newest first, each with its uploader's profile.

    If profiles cannot be loaded the videos are still returned with a
    placeholder profile and the problem is listed in `warnings`.
    """
    result = reader.list_by_owner(owner_id) if owner_id else reader.list_all()
    _raise_for_error(result)
    return result


@router.get("/{video_id}", response_model=VideoResult)
def get_video(
    video_id: Annotated[str, Path(description="Video ID")],
    reader: CatalogReaderDep,
):
    """Get one video with its uploader's profile."""
    result = reader.get_by_id(video_id)
    _raise_for_error(result)
    return result

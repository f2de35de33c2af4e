# =============================================================================
# core/services/upload_pipeline.py - Video Upload Pipeline
# =============================================================================
# Validates a video, stores the blob, resolves its public URL and records
# its metadata:
#
#   pipeline = UploadPipeline(blob_store, metadata_store)
#   result = pipeline.upload(video_file, "Demo", "First cut", principal,
#                            on_progress=lambda pct: print(f"{pct:.0f}%"))
#
# Returns an UploadResult; nothing is raised to the caller. A failed
# metadata insert leaves the blob in storage and reports its key.
# =============================================================================

import logging
import threading
import time
import uuid
from collections.abc import Callable
from datetime import datetime, timezone

from app.exceptions import (
    FileTooLargeError,
    InvalidFileTypeError,
    MetadataWriteError,
    StorageWriteError,
    UnauthenticatedError,
    UploadCancelledError,
    VidioException,
)
from core.models.results import UploadResult
from core.models.video import MediaAsset, Principal, VideoFile
from core.ports import BlobStore, MetadataStore

logger = logging.getLogger(__name__)

ALLOWED_VIDEO_TYPES = (
    "video/mp4",
    "video/quicktime",
    "video/x-msvideo",
    "video/mpeg",
)

# Used when the file name has no extension
EXTENSIONS_BY_TYPE = {
    "video/mp4": "mp4",
    "video/quicktime": "mov",
    "video/x-msvideo": "avi",
    "video/mpeg": "mpeg",
}

MAX_VIDEO_SIZE_BYTES = 50 * 1024 * 1024

VIDEOS_TABLE = "videos"

# Receives upload progress as a percentage in [0, 100]
ProgressCallback = Callable[[float], None]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def build_storage_key(owner_id: str, extension: str | None, now: datetime) -> str:
    """
    Build a unique storage key for a new upload.

    Format: videos/{owner_id}/{epoch_ms}-{random}.{ext}. The random part
    keeps keys distinct for uploads by one user in the same millisecond.
    """
    token = f"{int(now.timestamp() * 1000)}-{uuid.uuid4().hex[:12]}"
    name = f"{token}.{extension}" if extension else token
    return f"videos/{owner_id}/{name}"


class UploadPipeline:
    """
    Upload flow for one video: validate, store, publish, record.

    Stateless apart from the injected collaborators, so one instance can
    serve concurrent uploads.
    """

    def __init__(
        self,
        blob_store: BlobStore,
        metadata_store: MetadataStore,
        videos_table: str = VIDEOS_TABLE,
        allowed_mime_types: tuple[str, ...] | list[str] = ALLOWED_VIDEO_TYPES,
        max_size_bytes: int = MAX_VIDEO_SIZE_BYTES,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.blob_store = blob_store
        self.metadata_store = metadata_store
        self.videos_table = videos_table
        self.allowed_mime_types = tuple(allowed_mime_types)
        self.max_size_bytes = max_size_bytes
        self.clock = clock

    def validate(self, video_file: VideoFile, principal: Principal | None) -> None:
        """
        Check the upload preconditions in order; the first failure wins.

        Raises:
            UnauthenticatedError: No principal
            InvalidFileTypeError: MIME type not in the allow-list
            FileTooLargeError: Size over the limit
        """
        if principal is None:
            raise UnauthenticatedError()

        if video_file.mime_type not in self.allowed_mime_types:
            raise InvalidFileTypeError(
                video_file.file_name,
                video_file.mime_type,
                list(self.allowed_mime_types),
            )

        if video_file.size_bytes > self.max_size_bytes:
            raise FileTooLargeError(video_file.size_bytes, self.max_size_bytes)

    def upload(
        self,
        video_file: VideoFile,
        title: str,
        description: str | None,
        principal: Principal | None,
        on_progress: ProgressCallback | None = None,
        cancel_event: threading.Event | None = None,
        duration_seconds: int | float = 0,
    ) -> UploadResult:
        """
        Run the full upload flow.

        Args:
            video_file: The video blob and its file metadata
            title: Video title
            description: Video description
            principal: Signed-in user, resolved by the caller
            on_progress: Receives upload progress as a percentage
            cancel_event: Set it from another thread to abort the blob write
            duration_seconds: Duration if the caller computed it

        Returns:
            UploadResult with video_url on success, or the error
        """
        started = time.monotonic()

        try:
            self.validate(video_file, principal)
        except VidioException as e:
            logger.info(f"Rejected upload {video_file.file_name!r}: {e.message}")
            return UploadResult.fail(e.to_operation_error())

        now = self.clock()
        extension = video_file.extension or EXTENSIONS_BY_TYPE.get(video_file.mime_type)
        storage_key = build_storage_key(principal.id, extension, now)

        logger.info(
            f"Processing upload: {video_file.file_name} "
            f"({video_file.size_bytes} bytes) -> {storage_key}"
        )

        try:
            stored_key = self._store_blob(storage_key, video_file, on_progress, cancel_event)
            public_url = self._resolve_public_url(stored_key)
            self._record_metadata(
                video_file, title, description, principal,
                stored_key, public_url, now, duration_seconds,
            )
        except VidioException as e:
            logger.error(f"Upload failed ({e.code}): {e.message}")
            return UploadResult.fail(e.to_operation_error())

        logger.info(f"Upload complete: {stored_key} in {time.monotonic() - started:.2f}s")
        return UploadResult.ok(video_url=public_url, storage_path=stored_key)

    # -------------------------------------------------------------------------
    # Steps
    # -------------------------------------------------------------------------

    def _store_blob(
        self,
        storage_key: str,
        video_file: VideoFile,
        on_progress: ProgressCallback | None,
        cancel_event: threading.Event | None,
    ) -> str:
        def report(loaded: int, total: int) -> None:
            percentage = 100.0 if total <= 0 else min(100.0, loaded / total * 100)
            logger.debug(f"Upload progress {storage_key}: {percentage:.1f}%")
            if on_progress:
                on_progress(percentage)

        if cancel_event is not None and cancel_event.is_set():
            raise UploadCancelledError(storage_key)

        try:
            return self.blob_store.put(
                storage_key,
                video_file.content,
                video_file.mime_type,
                on_progress=report,
                cancel_event=cancel_event,
            )
        except VidioException:
            raise
        except Exception as e:
            raise StorageWriteError(storage_key, str(e)) from e

    def _resolve_public_url(self, stored_key: str) -> str:
        try:
            return self.blob_store.public_url_for(stored_key)
        except Exception as e:
            raise StorageWriteError(stored_key, str(e), blob_stored=True) from e

    def _record_metadata(
        self,
        video_file: VideoFile,
        title: str,
        description: str | None,
        principal: Principal,
        stored_key: str,
        public_url: str,
        now: datetime,
        duration_seconds: int | float,
    ) -> dict:
        try:
            asset = MediaAsset(
                title=title,
                description=description,
                file_name=video_file.file_name,
                file_size_bytes=video_file.size_bytes,
                mime_type=video_file.mime_type,
                storage_path=stored_key,
                public_url=public_url,
                owner_id=principal.id,
                created_at=now,
                duration_seconds=duration_seconds,
            )
            row = self.metadata_store.insert(self.videos_table, asset.to_record())
        except Exception as e:
            logger.error(f"Metadata insert failed, blob orphaned at {stored_key}: {e}")
            raise MetadataWriteError(stored_key, str(e)) from e

        logger.info(f"Created video record {row.get('id')} for {stored_key}")
        return row

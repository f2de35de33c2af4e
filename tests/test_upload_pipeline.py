# =============================================================================
# tests/test_upload_pipeline.py - Upload Pipeline Tests
# =============================================================================
# This module contains tests for:
# - Validation order and the "no I/O on rejection" guarantee
# - Storage key derivation and uniqueness
# - Progress forwarding and cancellation
# - Failure translation for each collaborator step
#
# Collaborators are MagicMocks; no Supabase calls are made.
# =============================================================================

import threading
from datetime import datetime, timezone

import pytest

from app.exceptions import UploadCancelledError
from core.models.results import ErrorKind
from core.models.video import VideoFile
from core.services.upload_pipeline import (
    MAX_VIDEO_SIZE_BYTES,
    UploadPipeline,
    build_storage_key,
)
from lib.supabase_client import SupabaseClientError
from tests.conftest import OWNER_ID


FIXED_NOW = datetime(2024, 6, 10, 8, 0, 0, 123000, tzinfo=timezone.utc)


@pytest.fixture
def pipeline(blob_store, metadata_store):
    """Pipeline with a frozen clock."""
    return UploadPipeline(blob_store, metadata_store, clock=lambda: FIXED_NOW)


def assert_no_io(blob_store, metadata_store):
    blob_store.put.assert_not_called()
    blob_store.public_url_for.assert_not_called()
    metadata_store.insert.assert_not_called()


# =============================================================================
# Validation Tests
# =============================================================================

class TestValidation:
    """Preconditions are checked in order, before any I/O."""

    def test_missing_principal_is_unauthenticated(self, pipeline, video_file, blob_store, metadata_store):
        """No principal fails with unauthenticated."""
        result = pipeline.upload(video_file, "Title", "Desc", None)

        assert result.success is False
        assert result.error.kind == ErrorKind.UNAUTHENTICATED
        assert_no_io(blob_store, metadata_store)

    @pytest.mark.parametrize("mime_type", ["image/png", "video/webm", "application/pdf", ""])
    def test_disallowed_type_rejected(self, pipeline, principal, blob_store, metadata_store, mime_type):
        """Types outside the allow-list fail with invalid_file_type."""
        video = VideoFile("clip.bin", mime_type, content=b"data")

        result = pipeline.upload(video, "Title", "Desc", principal)

        assert result.success is False
        assert result.error.kind == ErrorKind.INVALID_FILE_TYPE
        assert "MP4" in result.error.message
        assert_no_io(blob_store, metadata_store)

    @pytest.mark.parametrize("mime_type", ["video/mp4", "video/quicktime", "video/x-msvideo", "video/mpeg"])
    def test_allowed_types_accepted(self, pipeline, principal, mime_type):
        """Every allow-listed type uploads."""
        video = VideoFile("clip.vid", mime_type, content=b"data")

        result = pipeline.upload(video, "Title", "Desc", principal)

        assert result.success is True

    def test_oversized_file_rejected(self, pipeline, principal, blob_store, metadata_store):
        """Files over 50 MiB fail with file_too_large."""
        video = VideoFile("big.mp4", "video/mp4", size_bytes=MAX_VIDEO_SIZE_BYTES + 1)

        result = pipeline.upload(video, "Title", "Desc", principal)

        assert result.success is False
        assert result.error.kind == ErrorKind.FILE_TOO_LARGE
        assert_no_io(blob_store, metadata_store)

    def test_exactly_max_size_accepted(self, pipeline, principal):
        """The limit itself is allowed."""
        video = VideoFile("edge.mp4", "video/mp4", size_bytes=50 * 1024 * 1024)

        result = pipeline.upload(video, "Title", "Desc", principal)

        assert result.success is True

    def test_first_failure_wins(self, pipeline, blob_store, metadata_store):
        """An anonymous oversized non-video reports unauthenticated."""
        video = VideoFile("x.png", "image/png", size_bytes=MAX_VIDEO_SIZE_BYTES * 2)

        result = pipeline.upload(video, "Title", "Desc", None)

        assert result.error.kind == ErrorKind.UNAUTHENTICATED

    def test_type_checked_before_size(self, pipeline, principal):
        """An oversized non-video reports invalid_file_type."""
        video = VideoFile("x.png", "image/png", size_bytes=MAX_VIDEO_SIZE_BYTES * 2)

        result = pipeline.upload(video, "Title", "Desc", principal)

        assert result.error.kind == ErrorKind.INVALID_FILE_TYPE

    def test_custom_limits(self, blob_store, metadata_store, principal):
        """Allow-list and size limit come from the constructor."""
        pipeline = UploadPipeline(
            blob_store,
            metadata_store,
            allowed_mime_types=["video/webm"],
            max_size_bytes=10,
        )

        assert pipeline.upload(VideoFile("a.webm", "video/webm", content=b"12345"), "t", "", principal).success
        too_big = pipeline.upload(VideoFile("a.webm", "video/webm", content=b"x" * 11), "t", "", principal)
        assert too_big.error.kind == ErrorKind.FILE_TOO_LARGE


# =============================================================================
# Storage Key Tests
# =============================================================================

class TestStorageKey:
    """Key derivation."""

    def test_key_format(self):
        """Keys are videos/{owner}/{ms}-{token}.{ext}."""
        key = build_storage_key(OWNER_ID, "mp4", FIXED_NOW)

        prefix, _, name = key.rpartition("/")
        assert prefix == f"videos/{OWNER_ID}"
        assert name.startswith(f"{int(FIXED_NOW.timestamp() * 1000)}-")
        assert name.endswith(".mp4")

    def test_key_without_extension(self):
        """No extension means no trailing dot."""
        key = build_storage_key(OWNER_ID, None, FIXED_NOW)

        assert not key.endswith(".")
        assert "." not in key.rpartition("/")[2]

    def test_same_millisecond_keys_are_distinct(self):
        """Uploads by one owner in the same millisecond get different keys."""
        keys = {build_storage_key(OWNER_ID, "mp4", FIXED_NOW) for _ in range(500)}

        assert len(keys) == 500

    def test_concurrent_uploads_use_distinct_keys(self, pipeline, principal, video_file, blob_store):
        """Two uploads with a frozen clock write different keys."""
        first = pipeline.upload(video_file, "One", "", principal)
        second = pipeline.upload(video_file, "Two", "", principal)

        assert first.storage_path != second.storage_path
        written = [c.args[0] for c in blob_store.put.call_args_list]
        assert len(set(written)) == 2

    def test_extension_lowercased_from_filename(self, pipeline, principal, video_file):
        """holiday.MP4 is stored with .mp4."""
        result = pipeline.upload(video_file, "Title", "", principal)

        assert result.storage_path.endswith(".mp4")

    def test_extension_from_mime_type_when_missing(self, pipeline, principal):
        """A name without a dot takes its extension from the type."""
        video = VideoFile("recording", "video/quicktime", content=b"data")

        result = pipeline.upload(video, "Title", "", principal)

        assert result.storage_path.endswith(".mov")


# =============================================================================
# Successful Upload Tests
# =============================================================================

class TestSuccessfulUpload:
    """The happy path."""

    def test_returns_public_url_for_written_key(self, pipeline, principal, video_file, blob_store):
        """The URL is the one derived from the key that was written."""
        result = pipeline.upload(video_file, "Title", "Desc", principal)

        written_key = blob_store.put.call_args.args[0]
        assert result.success is True
        assert result.storage_path == written_key
        assert result.video_url.endswith(written_key)
        blob_store.public_url_for.assert_called_once_with(written_key)

    def test_inserts_exactly_one_record(self, pipeline, principal, video_file, blob_store, metadata_store):
        """One insert, storage_path matching the written key."""
        result = pipeline.upload(video_file, "Title", "Desc", principal)

        metadata_store.insert.assert_called_once()
        collection, record = metadata_store.insert.call_args.args
        assert collection == "videos"
        assert record["storage_path"] == blob_store.put.call_args.args[0]
        assert record["video_url"] == result.video_url

    def test_record_contents(self, pipeline, principal, video_file, metadata_store):
        """The record carries file metadata, owner and timestamp."""
        pipeline.upload(video_file, "Holiday", "Beach day", principal)

        record = metadata_store.insert.call_args.args[1]
        assert record["title"] == "Holiday"
        assert record["description"] == "Beach day"
        assert record["file_name"] == "holiday.MP4"
        assert record["file_size"] == video_file.size_bytes
        assert record["file_type"] == "video/mp4"
        assert record["uploaded_by"] == OWNER_ID
        assert record["duration"] == 0
        assert record["created_at"].startswith("2024-06-10T08:00:00.123")
        assert "id" not in record
        assert "file_size_display" not in record

    def test_supplied_duration_is_recorded(self, pipeline, principal, video_file, metadata_store):
        pipeline.upload(video_file, "Title", "", principal, duration_seconds=42)

        assert metadata_store.insert.call_args.args[1]["duration"] == 42

    def test_blob_written_with_content_type(self, pipeline, principal, video_file, blob_store):
        pipeline.upload(video_file, "Title", "", principal)

        _, data, content_type = blob_store.put.call_args.args
        assert data == video_file.content
        assert content_type == "video/mp4"


# =============================================================================
# Progress Tests
# =============================================================================

class TestProgress:
    """Byte progress becomes a percentage."""

    def test_progress_forwarded_as_percentage(self, pipeline, principal, video_file, blob_store):
        """(loaded, total) pairs arrive as 0-100 values."""
        def put(key, data, content_type, on_progress=None, cancel_event=None):
            for loaded in (0, 256, 512, 1024):
                on_progress(loaded, 1024)
            return key

        blob_store.put.side_effect = put
        seen = []

        result = pipeline.upload(video_file, "Title", "", principal, on_progress=seen.append)

        assert result.success is True
        assert seen == [0.0, 25.0, 50.0, 100.0]

    def test_progress_clamped_and_zero_total(self, pipeline, principal, video_file, blob_store):
        """Never above 100; an empty payload reports 100."""
        def put(key, data, content_type, on_progress=None, cancel_event=None):
            on_progress(2048, 1024)
            on_progress(0, 0)
            return key

        blob_store.put.side_effect = put
        seen = []

        pipeline.upload(video_file, "Title", "", principal, on_progress=seen.append)

        assert seen == [100.0, 100.0]
        assert all(0 <= p <= 100 for p in seen)

    def test_progress_optional(self, pipeline, principal, video_file, blob_store):
        """No callback is fine."""
        def put(key, data, content_type, on_progress=None, cancel_event=None):
            on_progress(10, 20)
            return key

        blob_store.put.side_effect = put

        assert pipeline.upload(video_file, "Title", "", principal).success is True


# =============================================================================
# Failure Tests
# =============================================================================

class TestFailures:
    """Collaborator failures are wrapped, never raised."""

    def test_storage_failure(self, pipeline, principal, video_file, blob_store, metadata_store):
        """A failed blob write is storage_write_failed with the cause kept."""
        blob_store.put.side_effect = SupabaseClientError("bucket not found", code="STORAGE_UPLOAD_REJECTED")

        result = pipeline.upload(video_file, "Title", "", principal)

        assert result.success is False
        assert result.error.kind == ErrorKind.STORAGE_WRITE_FAILED
        assert "bucket not found" in result.error.cause
        assert result.error.storage_path is None
        assert result.storage_path is None
        metadata_store.insert.assert_not_called()

    def test_storage_failure_not_retried(self, pipeline, principal, video_file, blob_store):
        blob_store.put.side_effect = RuntimeError("connection reset")

        pipeline.upload(video_file, "Title", "", principal)

        assert blob_store.put.call_count == 1

    def test_public_url_failure(self, pipeline, principal, video_file, blob_store, metadata_store):
        """A failed URL lookup is also storage_write_failed."""
        blob_store.public_url_for.side_effect = SupabaseClientError("no url")

        result = pipeline.upload(video_file, "Title", "", principal)

        assert result.error.kind == ErrorKind.STORAGE_WRITE_FAILED
        # The blob was written before the lookup failed
        assert result.error.storage_path == blob_store.put.call_args.args[0]
        metadata_store.insert.assert_not_called()

    def test_metadata_failure_reports_orphaned_blob(self, pipeline, principal, video_file, blob_store, metadata_store):
        """A failed insert names the blob left behind and does not delete it."""
        metadata_store.insert.side_effect = SupabaseClientError("violates row-level security policy")

        result = pipeline.upload(video_file, "Title", "", principal)

        written_key = blob_store.put.call_args.args[0]
        assert result.success is False
        assert result.error.kind == ErrorKind.METADATA_WRITE_FAILED
        assert result.error.storage_path == written_key
        assert result.storage_path == written_key
        assert "row-level security" in result.error.cause

    def test_cancelled_before_start(self, pipeline, principal, video_file, blob_store, metadata_store):
        """A set event stops the upload before the blob write."""
        cancel = threading.Event()
        cancel.set()

        result = pipeline.upload(video_file, "Title", "", principal, cancel_event=cancel)

        assert result.error.kind == ErrorKind.CANCELLED
        blob_store.put.assert_not_called()
        metadata_store.insert.assert_not_called()

    def test_cancelled_during_write(self, pipeline, principal, video_file, blob_store, metadata_store):
        """Cancellation raised by the store is reported with the key."""
        def put(key, data, content_type, on_progress=None, cancel_event=None):
            raise UploadCancelledError(key)

        blob_store.put.side_effect = put

        result = pipeline.upload(video_file, "Title", "", principal, cancel_event=threading.Event())

        assert result.error.kind == ErrorKind.CANCELLED
        assert result.error.storage_path == blob_store.put.call_args.args[0]
        metadata_store.insert.assert_not_called()

    def test_failing_progress_callback_is_storage_failure(self, pipeline, principal, video_file, blob_store):
        """Errors from the caller's callback surface as a result."""
        def put(key, data, content_type, on_progress=None, cancel_event=None):
            on_progress(1, 2)
            return key

        def explode(percentage):
            raise RuntimeError("ui closed")

        blob_store.put.side_effect = put

        result = pipeline.upload(video_file, "Title", "", principal, on_progress=explode)

        assert result.error.kind == ErrorKind.STORAGE_WRITE_FAILED

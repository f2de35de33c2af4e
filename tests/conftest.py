# =============================================================================
# tests/conftest.py - Pytest Configuration
# =============================================================================
# This module provides pytest fixtures and configuration for all tests.
#
# Key features:
# - Sets up mock environment variables before any imports
# - Provides mocked collaborators and sample rows
# =============================================================================

import os

# =============================================================================
# Set up test environment BEFORE any imports
# =============================================================================
# This must happen before importing app.config which loads settings immediately

os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_SERVICE_KEY", "test-service-key")
os.environ.setdefault("SUPABASE_JWT_SECRET", "test-jwt-secret-with-enough-length")
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("DEBUG", "true")

from unittest.mock import MagicMock

import pytest

from core.models.video import Principal, VideoFile
from core.ports import BlobStore, MetadataStore


OWNER_ID = "550e8400-e29b-41d4-a716-446655440000"
OTHER_OWNER_ID = "660e8400-e29b-41d4-a716-446655440001"


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def principal():
    """The signed-in uploader."""
    return Principal(id=OWNER_ID, email="ayu@example.com")


@pytest.fixture
def video_file():
    """A small valid MP4 upload."""
    return VideoFile(
        file_name="holiday.MP4",
        mime_type="video/mp4",
        content=b"\x00\x00\x00\x18ftypmp42" * 64,
    )


@pytest.fixture
def blob_store():
    """BlobStore mock that stores every key and builds a public URL."""
    store = MagicMock(spec=BlobStore)
    store.put.side_effect = lambda key, data, content_type, on_progress=None, cancel_event=None: key
    store.public_url_for.side_effect = (
        lambda key: f"https://test-project.supabase.co/storage/v1/object/public/videos/{key}"
    )
    return store


@pytest.fixture
def metadata_store():
    """MetadataStore mock; insert echoes the record back with an id."""
    store = MagicMock(spec=MetadataStore)
    store.insert.side_effect = lambda collection, record: {"id": "video-1", **record}
    store.query_all.return_value = []
    store.query_by_ids.return_value = []
    store.query_by_id.return_value = None
    return store


def make_video_row(
    video_id: str,
    owner_id: str = OWNER_ID,
    created_at: str = "2024-06-10T08:00:00+00:00",
    **overrides,
) -> dict:
    """Build a videos table row."""
    row = {
        "id": video_id,
        "title": f"Video {video_id}",
        "description": "A test video",
        "file_name": f"{video_id}.mp4",
        "file_size": 1536,
        "file_type": "video/mp4",
        "storage_path": f"videos/{owner_id}/1718000000000-abc123.mp4",
        "video_url": f"https://test-project.supabase.co/storage/v1/object/public/videos/{video_id}.mp4",
        "uploaded_by": owner_id,
        "duration": 0,
        "created_at": created_at,
    }
    row.update(overrides)
    return row


@pytest.fixture
def sample_video_rows():
    """Two videos by one owner and one by another, newest first."""
    return [
        make_video_row("video-3", OTHER_OWNER_ID, "2024-06-12T08:00:00+00:00"),
        make_video_row("video-2", OWNER_ID, "2024-06-11T08:00:00+00:00"),
        make_video_row("video-1", OWNER_ID, "2024-06-10T08:00:00+00:00"),
    ]


@pytest.fixture
def sample_profile_rows():
    """Profiles table rows for both owners."""
    return [
        {"id": OWNER_ID, "full_name": "Ayu Lestari", "email": "ayu@example.com"},
        {"id": OTHER_OWNER_ID, "full_name": "Budi Santoso", "email": "budi@example.com"},
    ]

# =============================================================================
# core/models/video.py - Video Catalog Schemas
# =============================================================================
# These models describe the rows this service reads and writes:
# - MediaAsset: one uploaded video's metadata record (videos table)
# - OwnerProfile: the uploader's public profile (profiles table)
# - VideoWithProfile: a MediaAsset joined with its owner's profile
# - Principal: the authenticated identity performing an upload
# - VideoFile: the incoming blob handed to the upload pipeline
#
# Python field names follow the domain; aliases are the stored column names
# so rows from Supabase validate directly and to_record() writes them back.
# =============================================================================

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from lib.utils import format_file_size


def _coerce_id(value):
    """Accept integer or UUID keys from the store as strings."""
    return None if value is None else str(value)


class OwnerProfile(BaseModel):
    """
    Public profile of the user who uploaded a video.

    Owned by the identity store; this service only reads it.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str | None = Field(
        default=None,
        description="Profile ID (same as the auth user ID)"
    )

    display_name: str | None = Field(
        default=None,
        alias="full_name",
        description="Name shown next to the user's videos"
    )

    email: str | None = Field(
        default=None,
        description="Contact email"
    )

    @field_validator("id", mode="before")
    @classmethod
    def normalize_id(cls, value):
        return _coerce_id(value)


# Substituted whenever the owner's profile cannot be resolved
PLACEHOLDER_PROFILE = OwnerProfile(
    display_name="Unknown User",
    email="unknown@email.com",
)


class MediaAsset(BaseModel):
    """
    Metadata record for one uploaded video.

    Created exactly once by the upload pipeline, after the blob is stored.
    File metadata, storage path, owner and timestamp never change afterwards.

    Example row:
        {
            "id": "9b2c...",
            "title": "Team demo",
            "file_name": "demo.mp4",
            "file_size": 1048576,
            "file_type": "video/mp4",
            "storage_path": "videos/550e.../1718000000000-a1b2c3d4e5f6.mp4",
            "video_url": "https://xyz.supabase.co/storage/v1/object/public/videos/...",
            "uploaded_by": "550e8400-...",
            "duration": 0,
            "created_at": "2024-06-10T08:00:00+00:00"
        }
    """

    model_config = ConfigDict(populate_by_name=True)

    # Assigned by the metadata store on insert
    id: str | None = Field(
        default=None,
        description="Record identifier"
    )

    title: str = Field(
        ...,
        description="Caller-supplied title"
    )

    description: str | None = Field(
        default=None,
        description="Caller-supplied description"
    )

    file_name: str = Field(
        ...,
        description="Original name of the uploaded file"
    )

    file_size_bytes: int = Field(
        ...,
        ge=0,
        alias="file_size",
        description="Size of the uploaded file in bytes"
    )

    mime_type: str = Field(
        ...,
        alias="file_type",
        description="MIME type of the uploaded file"
    )

    storage_path: str = Field(
        ...,
        description="Key of the blob in the storage bucket"
    )

    public_url: str = Field(
        ...,
        alias="video_url",
        description="Public URL of the stored blob"
    )

    owner_id: str = Field(
        ...,
        alias="uploaded_by",
        description="ID of the user who uploaded the video"
    )

    created_at: datetime = Field(
        ...,
        description="When the record was created"
    )

    # 0 means unknown
    duration_seconds: int | float = Field(
        default=0,
        ge=0,
        alias="duration",
        description="Video duration in seconds"
    )

    @field_validator("id", "owner_id", mode="before")
    @classmethod
    def normalize_ids(cls, value):
        return _coerce_id(value)

    @computed_field
    @property
    def file_size_display(self) -> str:
        """Human readable file size (e.g. "1.5 MB")."""
        return format_file_size(self.file_size_bytes)

    def to_record(self) -> dict:
        """Build the insert payload using stored column names."""
        record = self.model_dump(
            mode="json",
            by_alias=True,
            exclude={"id", "file_size_display"},
        )
        return record


class VideoWithProfile(MediaAsset):
    """
    A MediaAsset enriched with its owner's profile.

    The profile sits under "profiles", the key PostgREST uses for the
    embedded uploaded_by join.
    """

    profile: OwnerProfile = Field(
        default=PLACEHOLDER_PROFILE,
        alias="profiles",
        description="Owner profile, or the placeholder when unresolved"
    )

    @classmethod
    def from_row(
        cls,
        row: dict,
        profile: OwnerProfile | None = None,
    ) -> "VideoWithProfile":
        """
        Build from a videos row, attaching the given profile.

        Falls back to an embedded "profiles" object in the row, then to
        the placeholder.
        """
        data = {k: v for k, v in row.items() if k != "profiles"}
        if profile is None:
            embedded = row.get("profiles")
            profile = OwnerProfile.model_validate(embedded) if embedded else PLACEHOLDER_PROFILE
        return cls.model_validate({**data, "profiles": profile})


class Principal(BaseModel):
    """The authenticated identity performing an action."""

    model_config = ConfigDict(frozen=True)

    id: str
    email: str | None = None


@dataclass
class VideoFile:
    """
    A video blob handed to the upload pipeline.

    size_bytes defaults to len(content).
    """
    file_name: str
    mime_type: str
    content: bytes = b""
    size_bytes: int | None = None

    def __post_init__(self) -> None:
        if self.size_bytes is None:
            self.size_bytes = len(self.content)

    @property
    def extension(self) -> str | None:
        """Text after the last dot of the file name, lower-cased."""
        if "." not in self.file_name:
            return None
        ext = self.file_name.rsplit(".", 1)[-1].strip().lower()
        return ext or None

# =============================================================================
# core/services/catalog_reader.py - Video Catalog Queries
# =============================================================================
# Reads video records and attaches each uploader's public profile.
#
# Listing is best-effort about profiles: if the profile lookup fails, every
# video still comes back, carrying the placeholder profile, and the failure
# is logged and reported in result.warnings. get_by_id uses one embedded
# join instead, so a failure there fails the whole call.
#
# Profiles are joined in memory with a dict keyed by id; listings load the
# whole table, which is fine for the catalog sizes this serves.
# =============================================================================

import logging
from typing import Any

from app.exceptions import (
    MetadataReadError,
    ProfileFetchError,
    ProfileNotFoundError,
    VideoNotFoundError,
    VidioException,
)
from core.models.results import (
    ProfileResult,
    VideoListResult,
    VideoResult,
)
from core.models.video import PLACEHOLDER_PROFILE, OwnerProfile, VideoWithProfile
from core.ports import MetadataStore

logger = logging.getLogger(__name__)

VIDEOS_TABLE = "videos"
PROFILES_TABLE = "profiles"

PROFILE_COLUMNS = "id, full_name, email"

# PostgREST embedded join through the uploaded_by foreign key
VIDEO_WITH_PROFILE_COLUMNS = f"*, profiles:uploaded_by({PROFILE_COLUMNS})"


class CatalogReader:
    """
    Read side of the video catalog.

    All results are ordered newest first.
    """

    def __init__(
        self,
        metadata_store: MetadataStore,
        videos_table: str = VIDEOS_TABLE,
        profiles_table: str = PROFILES_TABLE,
    ):
        self.metadata_store = metadata_store
        self.videos_table = videos_table
        self.profiles_table = profiles_table

    # -------------------------------------------------------------------------
    # Listing
    # -------------------------------------------------------------------------

    def list_all(self) -> VideoListResult:
        """
        List every video with its owner's profile.

        Returns:
            VideoListResult; an empty catalog is a success with no videos
        """
        return self._list(filters=None)

    def list_by_owner(self, owner_id: str) -> VideoListResult:
        """List the videos uploaded by one user."""
        return self._list(filters={"uploaded_by": owner_id})

    def _list(self, filters: dict[str, Any] | None) -> VideoListResult:
        warnings: list[str] = []
        try:
            rows = self._fetch_videos(filters)
            if not rows:
                return VideoListResult.ok([])

            owner_ids = list(dict.fromkeys(
                str(row["uploaded_by"]) for row in rows if row.get("uploaded_by")
            ))

            try:
                profiles = self._fetch_profiles(owner_ids)
            except ProfileFetchError as e:
                # Videos are still usable without names and emails
                logger.warning(f"Profiles fetch error, using placeholder profiles: {e.message}")
                warnings.append(e.message)
                profiles = {}

            videos = self._attach_profiles(rows, profiles)
        except VidioException as e:
            logger.error(f"Get videos error: {e.message}")
            return VideoListResult.fail(e.to_operation_error())

        logger.debug(f"Listed {len(videos)} videos from {len(owner_ids)} owners")
        return VideoListResult.ok(videos, warnings=warnings)

    def _attach_profiles(
        self,
        rows: list[dict[str, Any]],
        profiles: dict[str, OwnerProfile],
    ) -> list[VideoWithProfile]:
        """Pair each row with its owner's profile, or the placeholder."""
        try:
            return [
                VideoWithProfile.from_row(
                    row,
                    profiles.get(str(row.get("uploaded_by")), PLACEHOLDER_PROFILE),
                )
                for row in rows
            ]
        except ValueError as e:
            raise MetadataReadError(f"malformed video row: {e}") from e

    def _fetch_videos(self, filters: dict[str, Any] | None) -> list[dict[str, Any]]:
        try:
            return self.metadata_store.query_all(
                self.videos_table,
                order_by="created_at",
                descending=True,
                filters=filters,
            )
        except Exception as e:
            raise MetadataReadError(str(e)) from e

    def _fetch_profiles(self, owner_ids: list[str]) -> dict[str, OwnerProfile]:
        try:
            rows = self.metadata_store.query_by_ids(
                self.profiles_table,
                owner_ids,
                columns=PROFILE_COLUMNS,
            )
            profiles = [OwnerProfile.model_validate(row) for row in rows]
        except Exception as e:
            raise ProfileFetchError(str(e)) from e

        return {profile.id: profile for profile in profiles if profile.id}

    # -------------------------------------------------------------------------
    # Single Video
    # -------------------------------------------------------------------------

    def get_by_id(self, video_id: str) -> VideoResult:
        """
        Fetch one video with its owner's profile in a single request.

        A query failure is returned as metadata_read_failed; there is no
        placeholder fallback here. A missing profile row (null join) still
        gets the placeholder.
        """
        try:
            row = self._fetch_video(video_id)
            video = VideoWithProfile.from_row(row)
        except VidioException as e:
            logger.error(f"Get video error: {e.message}")
            return VideoResult.fail(e.to_operation_error())
        except Exception as e:
            logger.error(f"Get video error: {e}")
            return VideoResult.fail(MetadataReadError(str(e)).to_operation_error())

        return VideoResult.ok(video)

    def _fetch_video(self, video_id: str) -> dict[str, Any]:
        try:
            row = self.metadata_store.query_by_id(
                self.videos_table,
                video_id,
                columns=VIDEO_WITH_PROFILE_COLUMNS,
            )
        except Exception as e:
            raise MetadataReadError(str(e)) from e

        if row is None:
            raise VideoNotFoundError(str(video_id))
        return row

    # -------------------------------------------------------------------------
    # Profiles
    # -------------------------------------------------------------------------

    def get_owner_profile(self, owner_id: str) -> ProfileResult:
        """Fetch one user's public profile."""
        try:
            row = self.metadata_store.query_by_id(
                self.profiles_table,
                owner_id,
                columns=PROFILE_COLUMNS,
            )
        except Exception as e:
            logger.error(f"Get profile error: {e}")
            return ProfileResult.fail(ProfileFetchError(str(e)).to_operation_error())

        if row is None:
            return ProfileResult.fail(ProfileNotFoundError(str(owner_id)).to_operation_error())

        return ProfileResult.ok(OwnerProfile.model_validate(row))

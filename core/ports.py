# =============================================================================
# core/ports.py - External Collaborator Interfaces
# =============================================================================
# The pipeline never talks to Supabase directly. It is handed objects that
# implement these interfaces:
# - IdentityProvider: who is making the request
# - BlobStore: where the video bytes go
# - MetadataStore: where the video records live
#
# The Supabase implementations live in core/services/; tests substitute mocks.
# =============================================================================

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable
from typing import Any

from core.models.video import Principal

# Called with (bytes_sent, total_bytes) as a blob upload advances
ByteProgressCallback = Callable[[int, int], None]


class IdentityProvider(ABC):
    """Resolves the authenticated principal for the current request."""

    @abstractmethod
    def get_current_principal(self) -> Principal | None:
        """Return the signed-in principal, or None when anonymous."""
        pass


class BlobStore(ABC):
    """
    Stores byte payloads under unique keys.

    Implementations raise on failure; the pipeline wraps the error.
    """

    @abstractmethod
    def put(
        self,
        key: str,
        data: bytes,
        content_type: str,
        on_progress: ByteProgressCallback | None = None,
        cancel_event: threading.Event | None = None,
    ) -> str:
        """
        Store data under key without overwriting.

        Args:
            key: Storage key (path inside the bucket)
            data: Payload
            content_type: MIME type recorded with the object
            on_progress: Receives (loaded, total) byte counts
            cancel_event: When set, the write stops and raises
                UploadCancelledError

        Returns:
            The key the object was stored under
        """
        pass

    @abstractmethod
    def public_url_for(self, stored_key: str) -> str:
        """Return a dereferenceable URL for a stored key."""
        pass


class MetadataStore(ABC):
    """
    Record storage with filtering and ordering.

    Records are plain dicts keyed by column name.
    """

    @abstractmethod
    def insert(self, collection: str, record: dict[str, Any]) -> dict[str, Any]:
        """Insert a record and return it as stored (with generated id)."""
        pass

    @abstractmethod
    def query_all(
        self,
        collection: str,
        order_by: str,
        descending: bool = True,
        filters: dict[str, Any] | None = None,
    ) -> list[dict[str, Any]]:
        """Fetch every record matching equality filters, ordered."""
        pass

    @abstractmethod
    def query_by_id(
        self,
        collection: str,
        record_id: str,
        columns: str = "*",
    ) -> dict[str, Any] | None:
        """Fetch one record, or None when no record has that id."""
        pass

    @abstractmethod
    def query_by_ids(
        self,
        collection: str,
        ids: Iterable[str],
        columns: str = "*",
    ) -> list[dict[str, Any]]:
        """Fetch the records whose id is in ids."""
        pass

# =============================================================================
# core/services/storage_service.py - Supabase Storage Operations
# =============================================================================
# BlobStore backed by a Supabase Storage bucket.
#
# Uploads go straight to the Storage REST endpoint with httpx so the body
# can be streamed in chunks and progress reported per chunk; the Python
# storage client only takes the whole payload at once. Public URLs come
# from the Supabase client.
# =============================================================================

import logging
import threading
from urllib.parse import quote

import httpx
from supabase import Client

from app.exceptions import UploadCancelledError
from core.ports import BlobStore, ByteProgressCallback
from lib.supabase_client import SupabaseClientError

logger = logging.getLogger(__name__)

# Storage bucket name
BUCKET_NAME = "videos"

DEFAULT_CHUNK_SIZE = 256 * 1024
DEFAULT_TIMEOUT = 120.0


class SupabaseBlobStore(BlobStore):
    """
    Blob store for one Supabase Storage bucket.

    Objects are written with x-upsert disabled, so an existing key is never
    overwritten; key uniqueness is the caller's job.
    """

    def __init__(
        self,
        client: Client,
        supabase_url: str,
        api_key: str,
        bucket: str = BUCKET_NAME,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        cache_control: str = "3600",
        http_client: httpx.Client | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.client = client
        self.supabase_url = supabase_url.rstrip("/")
        self.api_key = api_key
        self.bucket = bucket
        self.chunk_size = chunk_size
        self.cache_control = cache_control
        self.timeout = timeout
        self._http_client = http_client

    def _object_url(self, key: str) -> str:
        return f"{self.supabase_url}/storage/v1/object/{self.bucket}/{quote(key, safe='/')}"

    def _post(self, url: str, content, headers: dict[str, str]) -> httpx.Response:
        if self._http_client is not None:
            return self._http_client.post(url, content=content, headers=headers)
        with httpx.Client(timeout=self.timeout) as http:
            return http.post(url, content=content, headers=headers)

    def put(
        self,
        key: str,
        data: bytes,
        content_type: str,
        on_progress: ByteProgressCallback | None = None,
        cancel_event: threading.Event | None = None,
    ) -> str:
        """
        Upload bytes to the bucket under key.

        Args:
            key: Path inside the bucket
            data: File content
            content_type: MIME type stored with the object
            on_progress: Called with (bytes_sent, total_bytes) after each chunk
            cancel_event: Checked before each chunk

        Returns:
            The key the object was stored under

        Raises:
            UploadCancelledError: If cancel_event was set mid-upload
            SupabaseClientError: If the upload fails
        """
        total = len(data)

        def body():
            sent = 0
            for start in range(0, total, self.chunk_size):
                if cancel_event is not None and cancel_event.is_set():
                    raise UploadCancelledError(key)
                chunk = data[start:start + self.chunk_size]
                yield chunk
                sent += len(chunk)
                if on_progress:
                    on_progress(sent, total)

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "apikey": self.api_key,
            "Content-Type": content_type,
            "Content-Length": str(total),
            "cache-control": f"max-age={self.cache_control}",
            "x-upsert": "false",
        }

        try:
            response = self._post(self._object_url(key), body(), headers)
            response.raise_for_status()

        except UploadCancelledError:
            logger.info(f"Upload cancelled: {key}")
            raise
        except httpx.HTTPStatusError as e:
            logger.error(f"Storage upload rejected: {e.response.status_code} {e.response.text}")
            raise SupabaseClientError(
                message=f"Storage rejected upload ({e.response.status_code}): {e.response.text}",
                code="STORAGE_UPLOAD_REJECTED",
                suggestion="Check that the bucket exists and the key is not already taken",
                details={"bucket": self.bucket, "path": key},
            ) from e
        except Exception as e:
            if cancel_event is not None and cancel_event.is_set():
                logger.info(f"Upload cancelled: {key}")
                raise UploadCancelledError(key) from e
            logger.error(f"Storage upload failed: {e}")
            raise SupabaseClientError(
                message=f"Storage upload failed: {e}",
                code="STORAGE_UPLOAD_FAILED",
                suggestion="Check network connectivity to Supabase Storage",
                details={"bucket": self.bucket, "path": key},
            ) from e

        # An empty body has no chunks to report
        if total == 0 and on_progress:
            on_progress(0, 0)

        logger.info(f"Uploaded file to storage: {key} ({total} bytes)")
        return key

    def public_url_for(self, stored_key: str) -> str:
        """
        Get a public URL for a storage file.

        Raises:
            SupabaseClientError: If the URL cannot be built
        """
        try:
            url = self.client.storage.from_(self.bucket).get_public_url(stored_key)
        except Exception as e:
            logger.error(f"Failed to get public URL: {e}")
            raise SupabaseClientError(
                message=f"Failed to get public URL: {e}",
                code="PUBLIC_URL_FAILED",
                details={"bucket": self.bucket, "path": stored_key},
            ) from e

        if not url:
            raise SupabaseClientError(
                message="Storage returned an empty public URL",
                code="PUBLIC_URL_FAILED",
                suggestion="Check that the bucket is public",
                details={"bucket": self.bucket, "path": stored_key},
            )
        return url

# =============================================================================
# app/dependencies.py - Shared Dependencies
# =============================================================================
# FastAPI dependency injection for shared resources.
# These are injected into route handlers using Depends().
#
# One Supabase client is created per process and only read afterwards;
# the pipeline objects wrapping it are cheap and built per request.
# Tests replace any of these through app.dependency_overrides.
# =============================================================================

from functools import lru_cache
from typing import Annotated

from fastapi import Depends
from supabase import Client

from app.config import settings
from core.ports import BlobStore, MetadataStore
from core.services import (
    CatalogReader,
    SupabaseBlobStore,
    SupabaseMetadataStore,
    UploadPipeline,
)
from lib.supabase_client import create_supabase_client


@lru_cache
def get_supabase_client() -> Client:
    """Get the process-wide Supabase client (service role)."""
    return create_supabase_client(settings.SUPABASE_URL, settings.SUPABASE_SERVICE_KEY)


def get_metadata_store(
    client: Annotated[Client, Depends(get_supabase_client)],
) -> MetadataStore:
    return SupabaseMetadataStore(client)


def get_blob_store(
    client: Annotated[Client, Depends(get_supabase_client)],
) -> BlobStore:
    return SupabaseBlobStore(
        client,
        supabase_url=settings.SUPABASE_URL,
        api_key=settings.SUPABASE_SERVICE_KEY,
        bucket=settings.VIDEO_BUCKET,
        chunk_size=settings.UPLOAD_CHUNK_SIZE,
        cache_control=settings.STORAGE_CACHE_CONTROL,
    )


def get_upload_pipeline(
    blob_store: Annotated[BlobStore, Depends(get_blob_store)],
    metadata_store: Annotated[MetadataStore, Depends(get_metadata_store)],
) -> UploadPipeline:
    """Build the upload pipeline from the configured limits."""
    return UploadPipeline(
        blob_store,
        metadata_store,
        videos_table=settings.VIDEOS_TABLE,
        allowed_mime_types=settings.allowed_mime_types_list,
        max_size_bytes=settings.max_upload_size_bytes,
    )


def get_catalog_reader(
    metadata_store: Annotated[MetadataStore, Depends(get_metadata_store)],
) -> CatalogReader:
    return CatalogReader(
        metadata_store,
        videos_table=settings.VIDEOS_TABLE,
        profiles_table=settings.PROFILES_TABLE,
    )


# Type aliases for dependency injection
SupabaseDep = Annotated[Client, Depends(get_supabase_client)]
UploadPipelineDep = Annotated[UploadPipeline, Depends(get_upload_pipeline)]
CatalogReaderDep = Annotated[CatalogReader, Depends(get_catalog_reader)]

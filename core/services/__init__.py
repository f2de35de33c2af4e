# =============================================================================
# core/services/__init__.py - Service Layer Exports
# =============================================================================

from .catalog_reader import CatalogReader
from .metadata_service import SupabaseMetadataStore
from .storage_service import SupabaseBlobStore
from .upload_pipeline import UploadPipeline

__all__ = [
    "CatalogReader",
    "SupabaseBlobStore",
    "SupabaseMetadataStore",
    "UploadPipeline",
]

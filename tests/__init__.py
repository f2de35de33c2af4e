# =============================================================================
# tests/ - Test Suite
# =============================================================================
# This package contains all tests for the Vidio API:
# - test_utils.py: File size formatting and error helpers
# - test_config.py: Settings loading
# - test_models.py: Unit tests for Pydantic model validation
# - test_upload_pipeline.py / test_catalog_reader.py: Core services
# - test_storage_service.py / test_metadata_service.py: Supabase adapters
# - test_auth.py / test_api.py: Token checks and HTTP endpoints
#
# Run tests with: pytest
# =============================================================================

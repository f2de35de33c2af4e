# =============================================================================
# lib/ - Standalone Utility Modules
# =============================================================================
# This package contains reusable utilities:
# - supabase_client.py: Supabase client factory and adapter error type
# - utils.py: Shared utilities (file size formatting, error base, UUIDs)
#
# These modules are self-contained and can be tested in isolation.
# =============================================================================

from lib.supabase_client import (
    SupabaseClientError,
    create_supabase_client,
    is_invalid_id_error,
    is_no_rows_error,
)
from lib.utils import ApplicationError, format_file_size, normalize_uuid

__all__ = [
    # Supabase
    "SupabaseClientError",
    "create_supabase_client",
    "is_invalid_id_error",
    "is_no_rows_error",
    # Utils
    "ApplicationError",
    "format_file_size",
    "normalize_uuid",
]

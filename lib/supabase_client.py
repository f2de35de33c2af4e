# =============================================================================
# lib/supabase_client.py - Supabase Client Factory
# =============================================================================
# This module creates Supabase clients and defines the error raised by the
# Supabase-backed adapters in core/services/.
#
# There is no module-level client here: callers build one client with
# create_supabase_client() and inject it where it is needed (see
# app/dependencies.py).
#
# Usage:
#   from lib.supabase_client import create_supabase_client
#   client = create_supabase_client(settings.SUPABASE_URL, settings.SUPABASE_SERVICE_KEY)
# =============================================================================

from __future__ import annotations

import logging
from typing import Any

from supabase import create_client, Client

from lib.utils import ApplicationError

# Set up logging for this module
logger = logging.getLogger(__name__)

# PostgREST code returned by .single() when no row matches
POSTGREST_NO_ROWS = "PGRST116"

# Postgres invalid_text_representation, e.g. a malformed uuid in a filter
POSTGRES_INVALID_TEXT = "22P02"


class SupabaseClientError(ApplicationError):
    """
    Error during Supabase operations.

    Raised by the storage and metadata adapters so the pipeline can wrap
    it with the originating cause preserved.
    """

    def __init__(
        self,
        message: str,
        code: str = "SUPABASE_ERROR",
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, code=code, suggestion=suggestion, details=details)

    def __str__(self) -> str:
        result = f"[{self.code}] {self.message}"
        if self.suggestion:
            result += f" Suggestion: {self.suggestion}"
        return result


def create_supabase_client(url: str, key: str) -> Client:
    """
    Create a Supabase client.

    Server-side code should pass the service_role key, which bypasses
    Row Level Security (RLS).

    Args:
        url: Supabase project URL (https://<ref>.supabase.co)
        key: API key to authenticate with

    Returns:
        Client: Supabase client instance

    Raises:
        SupabaseClientError: If client creation fails
    """
    try:
        client = create_client(url, key)
    except Exception as e:
        raise SupabaseClientError(
            message=f"Failed to create Supabase client: {e}",
            code="CLIENT_INIT_FAILED",
            suggestion="Check SUPABASE_URL and SUPABASE_SERVICE_KEY in your .env file",
        ) from e

    logger.info("Supabase client initialized successfully")
    return client


def is_no_rows_error(error: Exception) -> bool:
    """Check whether a PostgREST error means "no matching row"."""
    code = getattr(error, "code", None)
    return code == POSTGREST_NO_ROWS or POSTGREST_NO_ROWS in str(error)


def is_invalid_id_error(error: Exception) -> bool:
    """Check whether a PostgREST error means the id is not a valid key value."""
    code = getattr(error, "code", None)
    return code == POSTGRES_INVALID_TEXT or POSTGRES_INVALID_TEXT in str(error)

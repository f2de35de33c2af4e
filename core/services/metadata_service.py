# =============================================================================
# core/services/metadata_service.py - Supabase Table Operations
# =============================================================================
# MetadataStore backed by Supabase's PostgREST tables.
# =============================================================================

import logging
from collections.abc import Iterable
from typing import Any

from supabase import Client

from core.ports import MetadataStore
from lib.supabase_client import SupabaseClientError, is_invalid_id_error, is_no_rows_error
from lib.utils import normalize_uuid

logger = logging.getLogger(__name__)


class SupabaseMetadataStore(MetadataStore):
    """
    Service for Supabase table queries.

    Every failure is raised as SupabaseClientError; "no row" on a single
    lookup is returned as None instead.
    """

    def __init__(self, client: Client):
        self.client = client

    def insert(self, collection: str, record: dict[str, Any]) -> dict[str, Any]:
        """
        Insert a record and return the stored row.

        Raises:
            SupabaseClientError: If the insert fails or returns nothing
        """
        try:
            response = (
                self.client.table(collection)
                .insert(record)
                .execute()
            )
        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to insert into {collection}: {e}",
                code="INSERT_FAILED",
                details={"collection": collection},
            ) from e

        if not response.data:
            raise SupabaseClientError(
                message="Insert returned no data",
                code="INSERT_NO_DATA",
                suggestion=f"Check the insert/select policies on {collection}",
                details={"collection": collection},
            )

        row = response.data[0]
        logger.debug(f"Inserted row {row.get('id')} into {collection}")
        return row

    def query_all(
        self,
        collection: str,
        order_by: str,
        descending: bool = True,
        filters: dict[str, Any] | None = None,
    ) -> list[dict[str, Any]]:
        """
        Fetch all rows, optionally filtered by column equality.

        Returns an empty list when nothing matches.
        """
        try:
            query = self.client.table(collection).select("*")
            for column, value in (filters or {}).items():
                query = query.eq(column, normalize_uuid(value))
            response = query.order(order_by, desc=descending).execute()
        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to query {collection}: {e}",
                code="QUERY_FAILED",
                details={"collection": collection, "filters": filters or {}},
            ) from e

        rows = response.data or []
        logger.debug(f"Fetched {len(rows)} rows from {collection}")
        return rows

    def query_by_id(
        self,
        collection: str,
        record_id: str,
        columns: str = "*",
    ) -> dict[str, Any] | None:
        """
        Fetch one row by id.

        columns may embed related tables, e.g. "*, profiles:uploaded_by(*)".
        An id the key column cannot hold (e.g. not a uuid) matches no row.
        """
        record_id = normalize_uuid(record_id)
        try:
            response = (
                self.client.table(collection)
                .select(columns)
                .eq("id", record_id)
                .single()
                .execute()
            )
        except Exception as e:
            if is_no_rows_error(e):
                return None
            if is_invalid_id_error(e):
                logger.debug(f"Malformed id for {collection}: {record_id!r}")
                return None
            raise SupabaseClientError(
                message=f"Failed to fetch {collection} row: {e}",
                code="FETCH_FAILED",
                suggestion="Check the table name and the columns expression",
                details={"collection": collection, "id": record_id},
            ) from e

        return response.data

    def query_by_ids(
        self,
        collection: str,
        ids: Iterable[str],
        columns: str = "*",
    ) -> list[dict[str, Any]]:
        """Fetch the rows whose id is one of ids."""
        id_list = [normalize_uuid(i) for i in ids]
        if not id_list:
            return []

        try:
            response = (
                self.client.table(collection)
                .select(columns)
                .in_("id", id_list)
                .execute()
            )
        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to fetch {collection} rows: {e}",
                code="FETCH_MANY_FAILED",
                details={"collection": collection, "count": len(id_list)},
            ) from e

        return response.data or []

"""
Database layer: the portal's only door to the hosted store.

The store is a Supabase project:
    - Postgres tables: vendor_applications, vendors, customer_reviews, marketplace
    - Object storage buckets for profile and product images
    - Two edge functions, approve_vendor and reject_vendor, which own every
      status transition (and, on approval, create the vendors row)

Nothing here computes anything. Each method issues one request, converts
the returned rows into models, and turns client failures into StoreError.
"""

import logging
from typing import Optional

import httpx
from postgrest.exceptions import APIError
from supabase import Client, create_client

from portal.config import (
    SUPABASE_URL, SUPABASE_ANON_KEY,
    APPLICATIONS_TABLE, VENDORS_TABLE, REVIEWS_TABLE, MARKETPLACE_TABLE,
    APPROVE_FUNCTION, REJECT_FUNCTION,
)
from portal.errors import StoreError
from portal.models import Application, Vendor, Review, MarketplaceItem

logger = logging.getLogger(__name__)

# PostgREST answers .single() with this code when no row matched
NO_ROWS_CODE = "PGRST116"


def get_client() -> Client:
    """Create a Supabase client from the configured project URL and anon key."""
    if not SUPABASE_URL or not SUPABASE_ANON_KEY:
        raise StoreError("Store not configured: set SUPABASE_URL and SUPABASE_ANON_KEY")
    return create_client(SUPABASE_URL, SUPABASE_ANON_KEY)


def _escape_like(value: str) -> str:
    """Escape the LIKE wildcards % and _ (and the escape character itself)."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _email_pattern(email: str) -> str:
    """ilike pattern for an email: literal except for *, which becomes a one-character wildcard."""
    return _escape_like(email).replace("*", "_")


class PortalStore:
    """Thin wrapper around a Supabase client, one method per query the portal runs."""

    def __init__(self, client: Optional[Client] = None):
        self._client = client

    @property
    def client(self) -> Client:
        if self._client is None:
            self._client = get_client()
        return self._client

    # ---- Row reads ----

    def _select_rows(self, table: str, query_builder=None) -> list[dict]:
        try:
            query = self.client.table(table).select("*")
            if query_builder is not None:
                query = query_builder(query)
            response = query.execute()
        except APIError as e:
            if e.code == NO_ROWS_CODE:
                return []
            raise StoreError(f"Reading {table} failed: {e.message}", code=e.code) from e
        except httpx.HTTPError as e:
            raise StoreError(f"Reading {table} failed: {e}") from e
        return response.data or []

    def _convert(self, table: str, rows: list[dict], model):
        try:
            return [model.from_row(row) for row in rows]
        except (KeyError, TypeError, ValueError) as e:
            raise StoreError(f"Malformed row in {table}: {e}") from e

    def fetch_applications(self) -> list[Application]:
        """All applications, newest first."""
        rows = self._select_rows(
            APPLICATIONS_TABLE, lambda q: q.order("created_at", desc=True)
        )
        return self._convert(APPLICATIONS_TABLE, rows, Application)

    def fetch_vendors(self) -> list[Vendor]:
        """All live vendors, newest first."""
        rows = self._select_rows(VENDORS_TABLE, lambda q: q.order("created_at", desc=True))
        return self._convert(VENDORS_TABLE, rows, Vendor)

    def fetch_reviews(self) -> list[Review]:
        """Every customer review, newest first."""
        rows = self._select_rows(REVIEWS_TABLE, lambda q: q.order("created_at", desc=True))
        return self._convert(REVIEWS_TABLE, rows, Review)

    def fetch_reviews_for_vendor(self, vendor_id: str) -> list[Review]:
        rows = self._select_rows(
            REVIEWS_TABLE,
            lambda q: q.eq("vendor_id", vendor_id).order("created_at", desc=True),
        )
        return self._convert(REVIEWS_TABLE, rows, Review)

    def _find_by_email(self, table: str, email: str, model):
        # PostgREST reads * as %, so it can only be matched by a wildcard;
        # rows whose email is not an exact match are dropped below
        def build(q):
            q = q.ilike("email", _email_pattern(email)).order("created_at", desc=True)
            return q if "*" in email else q.limit(1)

        wanted = email.lower()
        rows = [row for row in self._select_rows(table, build)
                if (row.get("email") or "").lower() == wanted]
        found = self._convert(table, rows[:1], model)
        return found[0] if found else None

    def find_application_by_email(self, email: str) -> Optional[Application]:
        """
        Case-insensitive exact match on email.
        Returns the most recent application if the applicant applied more than once.
        """
        return self._find_by_email(APPLICATIONS_TABLE, email, Application)

    def find_vendor_by_email(self, email: str) -> Optional[Vendor]:
        return self._find_by_email(VENDORS_TABLE, email, Vendor)

    # ---- Row writes ----

    def _insert_row(self, table: str, payload: dict) -> dict:
        try:
            response = self.client.table(table).insert([payload]).execute()
        except APIError as e:
            raise StoreError(f"Writing {table} failed: {e.message}", code=e.code) from e
        except httpx.HTTPError as e:
            raise StoreError(f"Writing {table} failed: {e}") from e
        rows = response.data or []
        return rows[0] if rows else payload

    def insert_application(self, payload: dict) -> dict:
        row = self._insert_row(APPLICATIONS_TABLE, payload)
        logger.info("Application submitted for %s (%s)", payload.get("email"), payload.get("service_type"))
        return row

    def insert_marketplace_item(self, item: MarketplaceItem) -> dict:
        row = self._insert_row(MARKETPLACE_TABLE, item.to_insert_dict())
        logger.info("Marketplace item submitted: %s", item.name)
        return row

    # ---- Object storage ----

    def upload_image(self, bucket: str, path: str, data: bytes, content_type: str) -> str:
        """
        Upload (overwriting any file at the same path) and return its public URL.
        """
        try:
            storage = self.client.storage.from_(bucket)
            storage.upload(
                path,
                data,
                file_options={"content-type": content_type, "upsert": "true"},
            )
            url = storage.get_public_url(path)
        except Exception as e:
            raise StoreError(f"Image upload failed: {e}") from e
        logger.info("Uploaded %s/%s (%d bytes)", bucket, path, len(data))
        return url

    # ---- Edge functions ----

    def _invoke(self, name: str, body: dict) -> None:
        try:
            self.client.functions.invoke(name, invoke_options={"body": body})
        except Exception as e:
            raise StoreError(f"{name} failed: {e}") from e

    def approve_vendor(self, application_id: str) -> None:
        self._invoke(APPROVE_FUNCTION, {"applicationId": application_id})

    def reject_vendor(self, application_id: str, reason: str) -> None:
        self._invoke(REJECT_FUNCTION, {"applicationId": application_id, "reason": reason})

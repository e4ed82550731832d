"""
Pytest fixtures: an in-memory stand-in for the Supabase-backed PortalStore.
"""
import itertools
from datetime import datetime, timedelta, timezone

import pytest

from portal.errors import StoreError
from portal.models import Application, Review, Vendor

BASE_TIME = datetime(2025, 3, 1, 9, 0, tzinfo=timezone.utc)


class FakeStore:
    """
    Behaves like PortalStore over plain lists of rows.

    The approve/reject functions mirror what the store's edge functions do:
    update the application and, on approval, create a vendors row.
    """

    def __init__(self):
        self.applications: list[dict] = []
        self.vendors: list[dict] = []
        self.reviews: list[dict] = []
        self.marketplace: list[dict] = []
        self.uploads: dict[tuple[str, str], bytes] = {}
        self.calls: list[tuple] = []
        self.fail_functions = False
        self.fail_reads = False
        self.fail_review_reads = False
        self._ids = itertools.count(1)
        self._clock = itertools.count(0)

    def _now(self) -> str:
        return (BASE_TIME + timedelta(minutes=next(self._clock))).isoformat()

    # ---- seeding helpers ----

    def add_application(self, **fields) -> dict:
        row = {
            "id": f"app-{next(self._ids)}",
            "name": "Applicant",
            "email": "applicant@example.com",
            "phone": "9000000000",
            "service_type": "guide",
            "description": "Local guide",
            "status": "pending",
            "created_at": self._now(),
        }
        row.update(fields)
        row.setdefault("updated_at", row["created_at"])
        self.applications.append(row)
        return row

    def add_vendor(self, **fields) -> dict:
        row = {
            "id": f"ven-{next(self._ids)}",
            "name": "Vendor",
            "email": "vendor@example.com",
            "phone": "9000000000",
            "service_type": "guide",
            "description": "Local guide",
            "status": "approved",
            "created_at": self._now(),
        }
        row.update(fields)
        self.vendors.append(row)
        return row

    def add_review(self, vendor_id: str, rating: int, **fields) -> dict:
        row = {
            "id": f"rev-{next(self._ids)}",
            "vendor_id": vendor_id,
            "customer_name": "Traveler",
            "rating": rating,
            "comment": None,
            "created_at": self._now(),
        }
        row.update(fields)
        self.reviews.append(row)
        return row

    # ---- PortalStore interface ----

    @staticmethod
    def _newest_first(rows):
        return sorted(rows, key=lambda r: r["created_at"], reverse=True)

    def _check_reads(self):
        self.calls.append(("read",))
        if self.fail_reads:
            raise StoreError("connection refused")

    def fetch_applications(self):
        self._check_reads()
        return [Application.from_row(r) for r in self._newest_first(self.applications)]

    def fetch_vendors(self):
        self._check_reads()
        return [Vendor.from_row(r) for r in self._newest_first(self.vendors)]

    def fetch_reviews(self):
        self._check_reads()
        return [Review.from_row(r) for r in self._newest_first(self.reviews)]

    def fetch_reviews_for_vendor(self, vendor_id):
        self._check_reads()
        if self.fail_review_reads:
            raise StoreError("reviews unavailable")
        rows = [r for r in self.reviews if r["vendor_id"] == vendor_id]
        return [Review.from_row(r) for r in self._newest_first(rows)]

    def find_application_by_email(self, email):
        self._check_reads()
        rows = [r for r in self.applications if r["email"].lower() == email.lower()]
        rows = self._newest_first(rows)
        return Application.from_row(rows[0]) if rows else None

    def find_vendor_by_email(self, email):
        self._check_reads()
        rows = [r for r in self.vendors if r["email"].lower() == email.lower()]
        rows = self._newest_first(rows)
        return Vendor.from_row(rows[0]) if rows else None

    def insert_application(self, payload):
        self.calls.append(("insert_application", payload))
        row = dict(payload, id=f"app-{next(self._ids)}", created_at=self._now())
        self.applications.append(row)
        return row

    def insert_marketplace_item(self, item):
        self.calls.append(("insert_marketplace_item", item))
        row = dict(item.to_insert_dict(), id=f"item-{next(self._ids)}")
        self.marketplace.append(row)
        return row

    def upload_image(self, bucket, path, data, content_type):
        self.calls.append(("upload_image", bucket, path, content_type))
        self.uploads[(bucket, path)] = data
        return f"https://store.example/storage/v1/object/public/{bucket}/{path}"

    def _find(self, application_id):
        for row in self.applications:
            if row["id"] == application_id:
                return row
        raise StoreError(f"application {application_id} not found")

    def approve_vendor(self, application_id):
        self.calls.append(("approve_vendor", application_id))
        if self.fail_functions:
            raise StoreError("approve_vendor failed: Edge Function returned a non-2xx status code")
        row = self._find(application_id)
        row["status"] = "approved"
        row["updated_at"] = self._now()
        self.add_vendor(
            name=row["name"], email=row["email"], phone=row["phone"],
            service_type=row["service_type"], description=row["description"],
            approved_at=row["updated_at"],
        )

    def reject_vendor(self, application_id, reason):
        self.calls.append(("reject_vendor", application_id, reason))
        if self.fail_functions:
            raise StoreError("reject_vendor failed: Edge Function returned a non-2xx status code")
        row = self._find(application_id)
        row["status"] = "rejected"
        row["rejection_reason"] = reason
        row["updated_at"] = self._now()

    def function_calls(self):
        return [c for c in self.calls if c[0] in ("approve_vendor", "reject_vendor")]


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def make_application():
    """Build an Application model straight from row fields."""
    counter = itertools.count(1)

    def _make(**fields):
        row = {
            "id": f"app-{next(counter)}",
            "name": "Applicant",
            "email": "applicant@example.com",
            "phone": "9000000000",
            "service_type": "guide",
            "description": "Local guide",
            "status": "pending",
        }
        row.update(fields)
        return Application.from_row(row)

    return _make


@pytest.fixture
def make_review():
    counter = itertools.count(1)

    def _make(vendor_id="ven-1", rating=5, **fields):
        row = {"id": f"rev-{next(counter)}", "vendor_id": vendor_id,
               "customer_name": "Traveler", "rating": rating}
        row.update(fields)
        return Review.from_row(row)

    return _make

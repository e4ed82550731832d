"""
Tests for model conversion and the closed enumerations.
"""
import pytest

from portal.models import (
    Application, ApplicationStatus, LookupResult, MarketplaceItem, ServiceType, Vendor,
)


class TestEnums:
    """Tests for ServiceType and ApplicationStatus."""

    def test_labels(self):
        assert ServiceType.GUIDE.label == "Tour Guide"
        assert ServiceType.MARKETPLACE.label == "Marketplace Vendor"

    def test_unknown_values_are_refused(self):
        with pytest.raises(ValueError):
            ServiceType("hotel")
        with pytest.raises(ValueError):
            ApplicationStatus("archived")

    @pytest.mark.parametrize("current,target,allowed", [
        (ApplicationStatus.PENDING, ApplicationStatus.APPROVED, True),
        (ApplicationStatus.PENDING, ApplicationStatus.REJECTED, True),
        (ApplicationStatus.PENDING, ApplicationStatus.PENDING, False),
        (ApplicationStatus.APPROVED, ApplicationStatus.REJECTED, False),
        (ApplicationStatus.REJECTED, ApplicationStatus.APPROVED, False),
        (ApplicationStatus.REJECTED, ApplicationStatus.PENDING, False),
    ])
    def test_transitions(self, current, target, allowed):
        assert current.can_transition_to(target) is allowed


class TestFromRow:
    """Tests for row conversion."""

    def test_application_defaults(self):
        application = Application.from_row({"id": 7, "service_type": "marketplace"})
        assert application.id == "7"
        assert application.status is ApplicationStatus.PENDING
        assert application.specialties == []
        assert application.cost_per_day is None
        assert application.created_at is None

    def test_application_numbers(self):
        application = Application.from_row({
            "id": "a", "service_type": "guide", "experience_years": "4",
            "cost_per_day": "1500.50", "price": 0,
        })
        assert application.experience_years == 4
        assert application.cost_per_day == 1500.5
        assert application.price == 0.0

    def test_vendor_timestamps(self):
        vendor = Vendor.from_row({
            "id": "v", "service_type": "guide",
            "created_at": "2025-03-01T09:00:00+00:00",
            "approved_at": "2025-03-02T09:00:00Z",
        })
        assert vendor.status is ApplicationStatus.APPROVED
        assert vendor.approved_at.day == 2

    def test_marketplace_item_reads_image_path(self):
        item = MarketplaceItem.from_row({"id": 1, "name": "Shawl", "price": "800",
                                         "image_path": "shawl.jpg"})
        assert item.image_url == "shawl.jpg"
        assert item.price == 800.0
        assert item.in_stock is True


class TestLookupResult:
    """Tests for LookupResult.found."""

    def test_empty(self):
        assert not LookupResult().found

    def test_vendor_only(self):
        vendor = Vendor.from_row({"id": "v", "service_type": "guide"})
        assert LookupResult(vendor=vendor).found

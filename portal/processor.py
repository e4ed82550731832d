"""
Statistics processor: the numbers behind the admin console.

Everything here is a pure function of the current snapshot of applications
and reviews. No store calls, no hidden state: call it again after every
refetch and the numbers follow the store.
"""

from decimal import Decimal, ROUND_HALF_UP
from enum import Enum

from portal.models import (
    Application, ApplicationStatus, DashboardStats, Review, ServiceType, VendorRating,
)


class AdminTab(str, Enum):
    DASHBOARD = "dashboard"
    PENDING = "pending"
    GUIDES = "guides"
    MARKETPLACE = "marketplace"


# ============================================================
# PART 1: Rounding helpers
# ============================================================

def _round_half_up(value: Decimal, places: int) -> Decimal:
    exponent = Decimal(1).scaleb(-places)
    return value.quantize(exponent, rounding=ROUND_HALF_UP)


def average_rating(reviews: list[Review]) -> float:
    """
    Mean star rating to one decimal. 0 when there are no reviews.
    Ratings are whole numbers so the mean is computed exactly before rounding.
    """
    if not reviews:
        return 0.0
    total = sum(r.rating for r in reviews)
    mean = Decimal(total) / Decimal(len(reviews))
    return float(_round_half_up(mean, 1))


def approval_rate(approved: int, rejected: int) -> int:
    """Percent of processed applications that were approved. 0 before any decision."""
    processed = approved + rejected
    if processed == 0:
        return 0
    return int(_round_half_up(Decimal(100 * approved) / Decimal(processed), 0))


# ============================================================
# PART 2: Dashboard statistics
# ============================================================

def compute_dashboard_stats(applications: list[Application], reviews: list[Review]) -> DashboardStats:
    """
    Counts by status, approved counts by service type, the global average
    rating and the approval rate.

    The approval rate covers every processed application, guides and
    marketplace sellers together.
    """
    stats = DashboardStats(total=len(applications))

    for application in applications:
        status = application.status
        if status is ApplicationStatus.PENDING:
            stats.pending += 1
        elif status is ApplicationStatus.APPROVED:
            stats.approved += 1
            if application.service_type is ServiceType.GUIDE:
                stats.guides += 1
            elif application.service_type is ServiceType.MARKETPLACE:
                stats.marketplace += 1
            else:
                raise ValueError(f"Unhandled service type: {application.service_type!r}")
        elif status is ApplicationStatus.REJECTED:
            stats.rejected += 1
        else:
            raise ValueError(f"Unhandled status: {status!r}")

    stats.avg_rating = average_rating(reviews)
    stats.approval_rate = approval_rate(stats.approved, stats.rejected)
    return stats


def service_type_share(stats: DashboardStats) -> dict[ServiceType, float]:
    """Percentage of approved applications per service type (bar widths)."""
    if stats.approved == 0:
        return {ServiceType.GUIDE: 0.0, ServiceType.MARKETPLACE: 0.0}
    return {
        ServiceType.GUIDE: stats.guides / stats.approved * 100,
        ServiceType.MARKETPLACE: stats.marketplace / stats.approved * 100,
    }


# ============================================================
# PART 3: Per-vendor ratings and list views
# ============================================================

def compute_vendor_rating(vendor_id: str, reviews: list[Review]) -> VendorRating:
    vendor_reviews = [r for r in reviews if r.vendor_id == vendor_id]
    return VendorRating(average=average_rating(vendor_reviews), count=len(vendor_reviews))


def vendor_ratings(applications: list[Application], reviews: list[Review]) -> dict[str, VendorRating]:
    """Rating summary for every application id in the list."""
    return {a.id: compute_vendor_rating(a.id, reviews) for a in applications}


def applications_for_tab(applications: list[Application], tab: AdminTab) -> list[Application]:
    """
    The applications a console tab lists, in fetch order.
    Guides and Marketplace only show approved applications.
    """
    if tab is AdminTab.DASHBOARD:
        return list(applications)
    if tab is AdminTab.PENDING:
        return [a for a in applications if a.status is ApplicationStatus.PENDING]
    if tab is AdminTab.GUIDES:
        service_type = ServiceType.GUIDE
    elif tab is AdminTab.MARKETPLACE:
        service_type = ServiceType.MARKETPLACE
    else:
        raise ValueError(f"Unhandled tab: {tab!r}")
    return [
        a for a in applications
        if a.status is ApplicationStatus.APPROVED and a.service_type is service_type
    ]

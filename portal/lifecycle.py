"""
Application lifecycle: moving applications through review and letting
applicants look themselves up.

Rules:
    1. The store's edge functions are the only thing that changes a status.
    2. After any transition, re-read the whole snapshot. Never patch local state.
    3. A rejection needs a reason; without one nothing is sent.
"""

import logging
from typing import Optional

from portal.database import PortalStore
from portal.errors import StoreError, ValidationError
from portal.models import Application, ApplicationStatus, LookupResult, Snapshot

logger = logging.getLogger(__name__)


def load_snapshot(store: PortalStore) -> Snapshot:
    """Fetch applications, reviews and vendors fresh from the store."""
    try:
        applications = store.fetch_applications()
        vendors = store.fetch_vendors()
        reviews = store.fetch_reviews()
    except StoreError:
        logger.exception("Error fetching dashboard data")
        raise
    return Snapshot(applications=applications, reviews=reviews, vendors=vendors)


def update_vendor_status(
    store: PortalStore,
    application_id: str,
    status: ApplicationStatus,
    reason: Optional[str] = None,
) -> Optional[Snapshot]:
    """
    Approve or reject an application through the store's functions,
    then return a freshly fetched snapshot.

    Raises ValidationError (before any store call) for a pending target or a
    blank rejection reason. Raises StoreError if the function call fails;
    the caller's current snapshot is then still the truth.

    Once the function call succeeds the transition has happened. If only the
    refetch fails, that is logged and None is returned instead of a snapshot.
    """
    status = ApplicationStatus(status)
    cleaned = (reason or "").strip()

    if not ApplicationStatus.PENDING.can_transition_to(status):
        raise ValidationError("Applications can only be approved or rejected.", field="status")
    if status is ApplicationStatus.REJECTED and not cleaned:
        raise ValidationError("A reason is required to reject an application.", field="reason")

    try:
        if status is ApplicationStatus.APPROVED:
            store.approve_vendor(application_id)
        elif status is ApplicationStatus.REJECTED:
            store.reject_vendor(application_id, cleaned)
        else:
            raise ValueError(f"Unhandled status: {status!r}")
    except StoreError:
        logger.error("Error updating status of %s to %s", application_id, status.value)
        raise

    logger.info("Application %s marked %s", application_id, status.value)
    try:
        return load_snapshot(store)
    except StoreError:
        logger.warning("Application %s is %s but the refreshed data could not be loaded",
                       application_id, status.value)
        return None


def lookup_vendor(store: PortalStore, email: str) -> LookupResult:
    """
    Find an applicant's application, vendor profile and reviews by email.

    No match is a normal empty result. Failing to load reviews for a found
    vendor is logged and leaves the review list empty; any other store
    failure is raised.
    """
    email = (email or "").strip()
    if not email:
        raise ValidationError("Please enter an email address", field="email")

    try:
        application = store.find_application_by_email(email)
        vendor = store.find_vendor_by_email(email)
    except StoreError:
        logger.exception("Search error for %s", email)
        raise

    reviews = []
    if vendor is not None:
        try:
            reviews = store.fetch_reviews_for_vendor(vendor.id)
        except StoreError:
            logger.exception("Error fetching reviews for vendor %s", vendor.id)

    return LookupResult(application=application, vendor=vendor, reviews=reviews)


def status_message(application: Application) -> str:
    """The sentence an applicant sees under their application status."""
    status = application.status
    if status is ApplicationStatus.PENDING:
        return "Your application is under review. You'll be notified once it's processed."
    if status is ApplicationStatus.APPROVED:
        return ("Congratulations! Your application has been approved and "
                "you're now listed in our directory.")
    if status is ApplicationStatus.REJECTED:
        message = "Your application was not approved."
        if application.rejection_reason:
            message += f" Reason: {application.rejection_reason}"
        return message
    raise ValueError(f"Unhandled status: {status!r}")

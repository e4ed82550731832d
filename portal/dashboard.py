"""
Jharkhand Tourism Vendor Portal: registration, application tracking and admin review.
Run with: streamlit run portal/dashboard.py
"""

import logging

import streamlit as st
import plotly.graph_objects as go
import pandas as pd

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from portal.config import (
    SESSION_FILE, MARKETPLACE_CATEGORIES, PRODUCT_TYPES, SHIPPING_TIMES, DEFAULT_SHIPPING_TIME,
)
from portal.database import PortalStore
from portal.errors import StoreError, ValidationError
from portal.intake import (
    GuideApplicationForm, MarketplaceItemForm, ImageUpload,
    submit_application, submit_marketplace_item,
)
from portal.lifecycle import load_snapshot, lookup_vendor, status_message, update_vendor_status
from portal.logger import configure_logging
from portal.models import ApplicationStatus, ServiceType
from portal.processor import (
    AdminTab, applications_for_tab, compute_dashboard_stats, service_type_share, vendor_ratings,
    average_rating,
)
from portal.session import AdminSession, FileSessionBackend, InFlightGuard

configure_logging()
logger = logging.getLogger(__name__)

# ============================================================
# PAGE CONFIG
# ============================================================
st.set_page_config(
    page_title="Jharkhand Tourism — Vendor Portal",
    page_icon="🌿",
    layout="wide",
    initial_sidebar_state="expanded",
)

CUSTOM_CSS = """
<style>
footer {visibility: hidden;}
#MainMenu {visibility: hidden;}

:root {
    --accent: #16a34a;
    --accent-warm: #d97706;
    --border: rgba(0,0,0,0.08);
}

[data-testid="stMetric"] {
    background: #ffffff;
    border: 1px solid var(--border); border-radius: 14px;
    padding: 18px 22px; box-shadow: 0 2px 12px rgba(0,0,0,0.06);
}
[data-testid="stMetric"] label {
    font-weight: 500; font-size: 0.72rem;
    text-transform: uppercase; letter-spacing: 0.06em;
}

.stButton > button { border-radius: 10px; font-weight: 600; }
.stButton > button[kind="primary"] { background: var(--accent) !important; border: none; }

.status-pill { padding: 3px 12px; border-radius: 999px; font-size: 0.8rem; font-weight: 600; }
.status-pending  { background: #fef9c3; color: #854d0e; }
.status-approved { background: #dcfce7; color: #166534; }
.status-rejected { background: #fee2e2; color: #991b1b; }
</style>
"""

st.markdown(CUSTOM_CSS, unsafe_allow_html=True)


def apply_chart_style(fig):
    fig.update_layout(
        font=dict(family="Inter, sans-serif", color="#4b5563"),
        paper_bgcolor="rgba(0,0,0,0)", plot_bgcolor="rgba(0,0,0,0)",
        title_font=dict(size=14, color="#111827"),
        margin=dict(l=40, r=20, t=45, b=35),
    )
    return fig


# ============================================================
# SHARED RESOURCES
# ============================================================

@st.cache_resource
def get_store() -> PortalStore:
    return PortalStore()


# One admin session per server process; the flag itself lives on disk
# so a browser refresh or server restart keeps the admin signed in.
@st.cache_resource
def get_admin_session() -> AdminSession:
    return AdminSession(FileSessionBackend(SESSION_FILE))


def _to_image_upload(uploaded) -> ImageUpload | None:
    if uploaded is None:
        return None
    return ImageUpload(filename=uploaded.name, content_type=uploaded.type or "", data=uploaded.getvalue())


def _status_pill(status: ApplicationStatus) -> str:
    return f'<span class="status-pill status-{status.value}">{status.value.capitalize()}</span>'


def _fmt_date(value) -> str:
    return value.strftime("%d %b %Y") if value else "—"


# ============================================================
# HOME
# ============================================================
def render_home():
    st.markdown("""
    <div style="text-align:center; padding:3vh 0 1rem;">
        <h1 style="font-size:2.4rem; font-weight:700; margin:0;">
            Welcome to <span style="color:#16a34a;">Jharkhand</span> Tourism Registration Platform</h1>
        <p style="color:#4b5563; font-size:1.05rem; max-width:760px; margin:0.8rem auto;">
            Join our official network of trusted tourism partners. Showcase your services,
            manage your offerings, and become part of every traveler's journey through Jharkhand.</p>
    </div>
    """, unsafe_allow_html=True)

    c1, c2, c3 = st.columns(3)
    with c1:
        st.markdown("#### 👥 Showcase your expertise")
        st.caption("Get officially verified as a Jharkhand Tourism partner and build trust with travelers.")
    with c2:
        st.markdown("#### 📍 Reach a global audience")
        st.caption("Cultural tours, craft workshops or treks: we put your services in the spotlight.")
    with c3:
        st.markdown("#### 🛡 Grow your business")
        st.caption("State approval sets you apart and gives you the credibility to grow sustainably.")


# ============================================================
# REGISTRATION FORMS
# ============================================================
def render_guide_registration(store: PortalStore):
    st.markdown("## Become a Guide")
    st.caption("Join Jharkhand's tourism network and connect with travelers.")

    if st.session_state.get("application_submitted"):
        st.success("**Application submitted!** Thank you for your interest. "
                   "Your application has been submitted and will be reviewed.")
        if st.button("Submit another application", key="btn_new_application"):
            st.session_state.application_submitted = False
            st.rerun()
        return

    guard = InFlightGuard(st.session_state, "application")
    with st.form("guide_registration"):
        c1, c2 = st.columns(2)
        with c1:
            name = st.text_input("Full name *")
            phone = st.text_input("Phone number *")
            location = st.text_input("Location")
            cost_per_day = st.text_input("Cost per day (₹)")
        with c2:
            email = st.text_input("Email address *")
            service_type = st.selectbox(
                "Service type *", list(ServiceType), format_func=lambda s: s.label,
            )
            experience_years = st.text_input("Years of experience")
            cost_per_hour = st.text_input("Cost per hour (₹)")
        specialties = st.text_input("Specialties", placeholder="Trekking, Tribal culture, Waterfalls")
        languages = st.text_input("Languages", placeholder="Hindi, English, Santhali")
        image = st.file_uploader("Profile image *", type=["png", "jpg", "jpeg", "webp", "gif"])
        if image is not None:
            st.image(image, width=128)
        description = st.text_area("Description *", height=120,
                                   placeholder="Tell travelers about yourself and your services")
        st.form_submit_button(
            "Submit application", type="primary", use_container_width=True,
            disabled=guard.busy, on_click=guard.start,
        )

    error = guard.pop_error()
    if error:
        st.error(error)
    if not guard.busy:
        return

    form = GuideApplicationForm(
        name=name, email=email, phone=phone, service_type=service_type.value,
        description=description, specialties=specialties, languages=languages,
        experience_years=experience_years, location=location,
        cost_per_day=cost_per_day, cost_per_hour=cost_per_hour,
    )
    error = None
    try:
        with st.spinner("Submitting your application..."):
            submit_application(store, form, _to_image_upload(image))
    except ValidationError as e:
        error = e.message
    except StoreError:
        logger.exception("Error submitting application")
        error = "Failed to submit application. Please try again."
    else:
        st.session_state.application_submitted = True
    finally:
        guard.finish(error)
    st.rerun()


def render_marketplace_registration(store: PortalStore):
    st.markdown("## Become a Vendor")
    st.caption("List a local product in the Jharkhand marketplace.")

    if st.session_state.get("item_submitted"):
        st.success("**Product submitted!** Thank you for adding your product to our marketplace. "
                   "Your item is now under review. Once approved, it will be visible to customers.")
        if st.button("Add another product", key="btn_new_item"):
            st.session_state.item_submitted = False
            st.rerun()
        return

    guard = InFlightGuard(st.session_state, "item")
    with st.form("marketplace_registration"):
        c1, c2 = st.columns(2)
        with c1:
            name = st.text_input("Product name *")
            category = st.selectbox("Category *", [""] + MARKETPLACE_CATEGORIES,
                                    format_func=lambda c: c or "Select category")
            price = st.text_input("Price (₹) *")
            location = st.text_input("Location")
            village = st.text_input("Village")
            weight = st.text_input("Weight")
        with c2:
            item_type = st.selectbox("Type *", [""] + PRODUCT_TYPES,
                                     format_func=lambda t: t or "Select a type")
            original_price = st.text_input("Original price (₹)")
            artisan = st.text_input("Artisan")
            producer = st.text_input("Producer")
            shipping_time = st.selectbox("Shipping time", SHIPPING_TIMES,
                                         index=SHIPPING_TIMES.index(DEFAULT_SHIPPING_TIME))
        features = st.text_input("Features", placeholder="Handwoven, Natural dyes")
        image = st.file_uploader("Product image *", type=["png", "jpg", "jpeg", "webp", "gif"])
        if image is not None:
            st.image(image, width=96)
        description = st.text_area("Description *", height=120)
        st.form_submit_button(
            "Submit product", type="primary", use_container_width=True,
            disabled=guard.busy, on_click=guard.start,
        )

    error = guard.pop_error()
    if error:
        st.error(error)
    if not guard.busy:
        return

    form = MarketplaceItemForm(
        name=name, category=category, type=item_type, description=description,
        features=features, location=location, price=price, original_price=original_price,
        shipping_time=shipping_time, artisan=artisan, village=village,
        producer=producer, weight=weight,
    )
    error = None
    try:
        with st.spinner("Submitting your product..."):
            submit_marketplace_item(store, form, _to_image_upload(image))
    except ValidationError as e:
        error = e.message
    except StoreError:
        logger.exception("Error submitting marketplace item")
        error = "Failed to submit marketplace item. Please try again."
    else:
        st.session_state.item_submitted = True
    finally:
        guard.finish(error)
    st.rerun()


# ============================================================
# VENDOR DASHBOARD (application tracker)
# ============================================================
def _clear_search():
    for key in ("search_email", "lookup_result"):
        st.session_state.pop(key, None)


def render_vendor_tracker(store: PortalStore):
    st.markdown("## Vendor Dashboard")
    st.markdown("#### 🔍 Track your application")
    st.caption("Enter the email address you used when applying to check your application status.")

    c1, c2, c3 = st.columns([4, 1, 1])
    with c1:
        email = st.text_input("Email", key="search_email", placeholder="Enter your registered email",
                              label_visibility="collapsed")
    with c2:
        search = st.button("Search", type="primary", use_container_width=True,
                           disabled=not (email or "").strip(), key="btn_search")
    with c3:
        if "lookup_result" in st.session_state:
            st.button("Clear", use_container_width=True, key="btn_clear", on_click=_clear_search)

    if search:
        st.session_state.pop("lookup_result", None)
        try:
            with st.spinner("Searching for your application..."):
                st.session_state.lookup_result = lookup_vendor(store, email)
        except ValidationError as e:
            st.error(e.message)
            return
        except StoreError:
            st.error("Failed to search for your application. Please try again.")
            return

    result = st.session_state.get("lookup_result")
    if result is None:
        st.info("Enter your email address above to check your application status. "
                "Approved vendors will also see their customer reviews here.")
        return

    if not result.found:
        st.warning("No applications found for this email address. "
                   "Make sure you're using the same email address you used when applying.")
        return

    application = result.application
    if application is not None:
        st.markdown("---")
        h1, h2 = st.columns([4, 1])
        with h1:
            st.markdown(f"### {application.name}")
            st.caption(f"{application.email} · {application.phone}")
        with h2:
            st.markdown(_status_pill(application.status), unsafe_allow_html=True)

        d1, d2, d3 = st.columns(3)
        d1.markdown(f"**Service type:** {application.service_type.label}")
        if application.location:
            d2.markdown(f"**Location:** {application.location}")
        if application.experience_years:
            d3.markdown(f"**Experience:** {application.experience_years} years")
        st.caption(f"Applied: {_fmt_date(application.created_at)}")
        st.markdown("**Description**")
        st.markdown(f"> {application.description}")

        message = status_message(application)
        if application.status is ApplicationStatus.APPROVED:
            st.success(message)
        elif application.status is ApplicationStatus.REJECTED:
            st.error(message)
        else:
            st.warning(message)

    vendor = result.vendor
    if vendor is not None:
        st.markdown("---")
        v1, v2 = st.columns([3, 1])
        with v1:
            st.markdown("### Your vendor profile")
            st.caption(f"Active since {_fmt_date(vendor.created_at)}")
        with v2:
            st.metric("Rating", f"{average_rating(result.reviews):.1f}/5",
                      help=f"{len(result.reviews)} reviews")

        if not result.reviews:
            st.caption("No reviews yet. Reviews from customers will appear here.")
        for review in result.reviews:
            with st.container(border=True):
                st.markdown(f"**{review.customer_name}** &nbsp; {'★' * review.rating}{'☆' * (5 - review.rating)}")
                if review.comment:
                    st.markdown(review.comment)
                st.caption(_fmt_date(review.created_at))


# ============================================================
# ADMIN LOGIN
# ============================================================
def render_admin_login(session: AdminSession):
    col1, col2, col3 = st.columns([1.3, 1, 1.3])
    with col2:
        st.markdown("### 🔒 Admin Portal")
        st.caption("Jharkhand Tourism Management")
        with st.form("login_form"):
            email = st.text_input("Email address", placeholder="admin@jharkhantourism.gov.in")
            password = st.text_input("Password", type="password", placeholder="Enter your password")
            submitted = st.form_submit_button("Sign in", use_container_width=True, type="primary")
            if submitted:
                if session.login(email, password):
                    st.rerun()
                else:
                    st.error("Invalid credentials")


# ============================================================
# ADMIN CONSOLE
# ============================================================
def chart_service_types(stats):
    share = service_type_share(stats)
    fig = go.Figure(go.Bar(
        y=["Tour Guides", "Marketplace Vendors"],
        x=[share[ServiceType.GUIDE], share[ServiceType.MARKETPLACE]],
        orientation="h",
        marker_color=["#22c55e", "#3b82f6"],
        text=[stats.guides, stats.marketplace], textposition="outside",
    ))
    fig.update_layout(title="Approved service types", height=260, xaxis_range=[0, 110],
                      xaxis_title="% of approved")
    apply_chart_style(fig)
    st.plotly_chart(fig, use_container_width=True)


def chart_approval_rate(stats):
    fig = go.Figure(go.Indicator(
        mode="gauge+number",
        value=stats.approval_rate,
        number={"suffix": "%"},
        gauge={"axis": {"range": [0, 100]}, "bar": {"color": "#16a34a"}},
        title={"text": "Approval rate · of processed applications"},
    ))
    fig.update_layout(height=260)
    apply_chart_style(fig)
    st.plotly_chart(fig, use_container_width=True)


def _queue_rejection(guard: InFlightGuard, application_id: str):
    reason = st.session_state.get(f"reject_reason_{application_id}", "")
    guard.start((application_id, ApplicationStatus.REJECTED, reason))


def _run_queued_status_update(store: PortalStore, guard: InFlightGuard):
    """Carry out the approve/reject queued by a button, after the page has drawn it disabled."""
    if not guard.busy:
        return
    request = guard.request
    if request is None:
        guard.finish()
        return

    application_id, status, reason = request
    error = None
    try:
        with st.spinner("Updating status..."):
            snapshot = update_vendor_status(store, application_id, status, reason)
    except ValidationError as e:
        error = e.message
    except StoreError as e:
        error = f"Failed to update status. Error: {e.message}"
    else:
        st.session_state.pop("rejecting_id", None)
        if snapshot is not None:
            st.session_state.fresh_snapshot = snapshot
    finally:
        guard.finish(error)
    st.rerun()


def render_pending(applications, guard: InFlightGuard):
    st.markdown("### Pending applications")
    pending = applications_for_tab(applications, AdminTab.PENDING)
    if not pending:
        st.info("🕒 No pending applications")
        return

    busy = guard.busy
    rejecting = st.session_state.get("rejecting_id")

    for application in pending:
        with st.container(border=True):
            h1, h2 = st.columns([4, 1])
            with h1:
                st.markdown(f"#### {application.name}")
                st.caption(f"{application.email} · {application.phone} · {application.service_type.label}")
            with h2:
                st.caption(f"Applied {_fmt_date(application.created_at)}")
            st.markdown(f"> {application.description}")

            b1, b2, _ = st.columns([1, 1, 4])
            with b1:
                st.button("✅ Approve", key=f"approve_{application.id}", disabled=busy,
                          use_container_width=True, type="primary", on_click=guard.start,
                          args=((application.id, ApplicationStatus.APPROVED, None),))
            with b2:
                if st.button("❌ Reject", key=f"reject_{application.id}", disabled=busy,
                             use_container_width=True):
                    st.session_state.rejecting_id = application.id
                    st.rerun()

            if rejecting == application.id:
                with st.form(f"reject_form_{application.id}"):
                    st.markdown(f"**Reject application for {application.name}**")
                    st.text_area(
                        "Reason", key=f"reject_reason_{application.id}",
                        placeholder="e.g., Incomplete information provided, "
                                    "does not meet our quality standards...",
                    )
                    f1, f2 = st.columns(2)
                    cancel = f1.form_submit_button("Cancel", use_container_width=True, disabled=busy)
                    f2.form_submit_button("Confirm rejection", type="primary",
                                          use_container_width=True, disabled=busy,
                                          on_click=_queue_rejection, args=(guard, application.id))
                if cancel:
                    st.session_state.pop("rejecting_id", None)
                    st.rerun()


def render_approved(applications, reviews, tab: AdminTab):
    title = "Approved Tour Guides" if tab is AdminTab.GUIDES else "Approved Marketplace Vendors"
    st.markdown(f"### {title}")
    approved = applications_for_tab(applications, tab)
    if not approved:
        noun = "guides" if tab is AdminTab.GUIDES else "vendors"
        st.info(f"No approved {noun} yet")
        return

    ratings = vendor_ratings(approved, reviews)
    for application in approved:
        rating = ratings[application.id]
        with st.container(border=True):
            h1, h2 = st.columns([4, 1])
            with h1:
                st.markdown(f"#### {application.name}")
                st.caption(f"{application.email} · {application.phone}")
                st.markdown(f"⭐ **{rating.average:.1f}/5** ({rating.count} reviews)")
            with h2:
                st.caption(f"Approved {_fmt_date(application.updated_at)}")
            st.markdown(application.description)


def render_admin_console(store: PortalStore, session: AdminSession):
    st.sidebar.markdown("---")
    st.sidebar.markdown("**Admin Panel**")
    st.sidebar.caption("Tourism Management")
    guard = InFlightGuard(st.session_state, "status_update")
    if st.sidebar.button("Sign out", use_container_width=True, key="btn_logout"):
        session.logout()
        guard.reset()
        for key in ("rejecting_id", "fresh_snapshot"):
            st.session_state.pop(key, None)
        st.rerun()

    # a status change hands over the data it already refetched
    snapshot = st.session_state.pop("fresh_snapshot", None)
    if snapshot is None:
        try:
            with st.spinner("Loading applications..."):
                snapshot = load_snapshot(store)
        except StoreError:
            st.error("Could not load applications. Please try again.")
            if guard.busy:
                guard.finish()
            return

    error = guard.pop_error()
    if error:
        st.error(error)

    applications, reviews = snapshot.applications, snapshot.reviews
    stats = compute_dashboard_stats(applications, reviews)

    tab_dash, tab_pending, tab_guides, tab_market = st.tabs([
        "📊 Dashboard", f"🕒 Pending Applications ({stats.pending})", "👥 Tour Guides", "🛍 Marketplace",
    ])

    with tab_dash:
        st.markdown("### Dashboard overview")
        m1, m2, m3, m4 = st.columns(4)
        m1.metric("Total applications", stats.total)
        m2.metric("Pending review", stats.pending)
        m3.metric("Approved", stats.approved, help=f"{stats.rejected} rejected")
        m4.metric("Avg rating", f"{stats.avg_rating:.1f} ★", help=f"{len(reviews)} reviews")

        c1, c2 = st.columns(2)
        with c1:
            chart_service_types(stats)
        with c2:
            chart_approval_rate(stats)

        st.caption(f"Live vendor profiles: **{len(snapshot.vendors)}**")
        if applications:
            st.markdown("##### Recent applications")
            df = pd.DataFrame([{
                "Name": a.name,
                "Email": a.email,
                "Service": a.service_type.label,
                "Status": a.status.value.capitalize(),
                "Applied": _fmt_date(a.created_at),
            } for a in applications[:20]])
            st.dataframe(df, use_container_width=True, hide_index=True)

    with tab_pending:
        render_pending(applications, guard)
    with tab_guides:
        render_approved(applications, reviews, AdminTab.GUIDES)
    with tab_market:
        render_approved(applications, reviews, AdminTab.MARKETPLACE)

    _run_queued_status_update(store, guard)


# ============================================================
# MAIN
# ============================================================
PAGES = ["Home", "Become a Guide", "Become a Vendor", "Vendor Dashboard", "Admin"]


def main():
    st.sidebar.markdown("""
    <div style="text-align:center; padding:0.5rem 0 0.3rem;">
        <span style="font-size:1.4rem;">🌿</span>
        <span style="font-size:1.1rem; font-weight:700; margin-left:6px;">Jharkhand Tourism</span>
    </div>""", unsafe_allow_html=True)
    page = st.sidebar.radio("Navigate", PAGES, label_visibility="collapsed", key="nav_page")

    store = get_store()
    if page == "Home":
        render_home()
    elif page == "Become a Guide":
        render_guide_registration(store)
    elif page == "Become a Vendor":
        render_marketplace_registration(store)
    elif page == "Vendor Dashboard":
        render_vendor_tracker(store)
    elif page == "Admin":
        session = get_admin_session()
        if session.is_authenticated:
            render_admin_console(store, session)
        else:
            render_admin_login(session)


if __name__ == "__main__":
    main()

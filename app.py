import logging
from contextlib import contextmanager
from typing import Dict, List, Optional

import pandas as pd
import streamlit as st

from core import data as dc
from core.config import load_settings, parse_sheet_id
from core.export import CSV_FILENAME, PDF_FILENAME, build_pdf_report, to_csv_bytes
from core.filters import DashboardFilters, Targets
from core.metrics_marketing import compute_marketing
from core.metrics_overview import compute_overview
from core.metrics_services import compute_services
from core.metrics_utilization import compute_utilization

logger = logging.getLogger(__name__)


# ---------- UI / layout helpers ----------
def inject_base_styles():
    if st.session_state.get("_base_css_injected"):
        return
    st.markdown(
        """
        <style>
        .app-top-bar {padding: 6px 0 4px;border-bottom: 1px solid #e5e7eb;margin-bottom: 10px;}
        .app-top-bar .breadcrumb {color: #6b7280;font-size: 0.9rem;margin-bottom: 2px;}
        .app-top-bar .page-title {font-size: 1.4rem;font-weight: 700;color: #111827;}
        .card {border: 1px solid #e5e7eb;border-radius: 12px;padding: 16px;background: #ffffff;
               box-shadow: 0 1px 2px rgba(0,0,0,0.04); margin-bottom: 12px;}
        .card-title {font-weight: 600;font-size: 1.0rem;color: #111827;margin-bottom: 8px;}
        .chip-row {display: flex;flex-wrap: wrap;gap: 6px;margin-top: 6px;}
        .chip {background: #f3f4f6;border: 1px solid #e5e7eb;border-radius: 14px;padding: 4px 10px;font-size: 0.85rem;color: #374151;}
        </style>
        """,
        unsafe_allow_html=True,
    )
    st.session_state["_base_css_injected"] = True


@contextmanager
def card(title: str):
    container = st.container(border=True)
    container.markdown(f"<div class='card-title'>{title}</div>", unsafe_allow_html=True)
    with container:
        yield container


def format_filter_summary(selected_months: List[str], all_months: List[str], compare_mode: bool, source: Optional[str]) -> str:
    month_chip = (
        "Months: All"
        if not selected_months or len(selected_months) == len(all_months)
        else f"Months: {selected_months[0]}–{selected_months[-1]}"
    )
    chips = [month_chip, "Comparing with Previous Year" if compare_mode else "No comparison"]
    chips.append("Source: Google Sheets" if source == "sheets" else "Source: sample data")
    return "".join([f"<span class='chip'>{txt}</span>" for txt in chips])


def refresh_data():
    try:
        dc.clear_cache()
        dc.load_dashboard_data(load_settings(), use_mock=st.session_state.get("use_mock", False))
    except Exception:
        logger.exception("Refresh failed")
        st.toast("Refresh failed. Could not refresh data. Please try again.")
        return
    st.toast("Data refreshed. The dashboard has been updated with the latest data.")


def render_page_header(title: str, breadcrumb: str, filter_summary_html: str, csv_df: Optional[pd.DataFrame], pdf_bytes_fn):
    inject_base_styles()
    c1, c2 = st.columns([6, 4])
    with c1:
        st.markdown(
            f"<div class='app-top-bar'><div class='breadcrumb'>{breadcrumb}</div><div class='page-title'>{title}</div></div>",
            unsafe_allow_html=True,
        )
    with c2:
        btn_cols = st.columns(3)
        if btn_cols[0].button("Refresh Data"):
            refresh_data()
            st.rerun()
        if csv_df is not None and not csv_df.empty:
            btn_cols[1].download_button("Export as CSV", data=to_csv_bytes(csv_df), file_name=CSV_FILENAME, mime="text/csv")
        # the report is rendered on demand and kept until the filters change
        prepared = st.session_state.get("pdf_report")
        if prepared and prepared[0] != filter_summary_html:
            prepared = None
        if prepared is None and btn_cols[2].button("Prepare PDF", key="prepare_pdf"):
            prepared = (filter_summary_html, pdf_bytes_fn())
            st.session_state["pdf_report"] = prepared
        if prepared is not None:
            btn_cols[2].download_button("Export as PDF", data=prepared[1], file_name=PDF_FILENAME, mime="application/pdf")
    st.markdown(f"<div class='chip-row'>{filter_summary_html}</div>", unsafe_allow_html=True)


def render_kpi_cards(cards: Dict[str, object]):
    cols = st.columns(4)
    income_delta = cards.get("income_delta_pct")
    cols[0].metric(
        "Total Income",
        dc.format_sar(cards.get("total_income")),
        delta=(f"{income_delta:.1f}%" if cards.get("income_vs_target") else f"-{income_delta:.1f}%") if income_delta is not None else None,
        help=f"vs {dc.format_sar(cards.get('total_target'))} Target",
    )
    hours_delta = cards.get("hours_delta_pct")
    cols[1].metric(
        "Hours Booked",
        f"{cards.get('total_hours', 0):,.0f} hours",
        delta=(f"{hours_delta:.1f}%" if cards.get("hours_vs_target") else f"-{hours_delta:.1f}%") if hours_delta is not None else None,
        help=f"vs {cards.get('total_hour_target', 0):,.0f} hours Target",
    )
    cols[2].metric(
        "Avg. Monthly Income",
        dc.format_sar(cards.get("avg_monthly_income")),
        help=f"vs {dc.format_sar(cards.get('avg_monthly_target'))} Target",
    )
    highest = cards.get("highest_utilization") or {}
    cols[3].metric(
        "Highest Utilization",
        f"{highest['operational']:.0f}%" if highest else "N/A",
        help=f"In {highest['month']}" if highest else None,
    )


def render_chart(spec: Optional[dict], empty_message: str = "No data for the selected months."):
    if spec:
        st.vega_lite_chart(spec, use_container_width=True)
    else:
        st.info(empty_message)


def render_bullets(items: List[str]):
    if items:
        st.markdown("\n".join(f"- {item}" for item in items))


# ---------- UI setup ----------
st.set_page_config(page_title="Frame Studio Performance Dashboard", layout="wide")
inject_base_styles()
st.title("Frame Studio Performance Dashboard")
st.caption("Financial, booking and marketing figures from Google Sheets.")

settings = load_settings()

# ----- Sidebar: navigation + filters -----
with st.sidebar:
    st.markdown("### Navigate")
    nav_choice = st.radio("Navigate", ["Overview", "Services", "Utilization", "Marketing", "Data Sources"], index=0)

    st.markdown("---")
    st.markdown("### Filters")
    use_mock = st.checkbox("Use sample data", value=False, key="use_mock")

data_ctx = dc.load_dashboard_data(settings, use_mock=use_mock)
months = data_ctx.get("months", [])

with st.sidebar:
    selected_months = st.multiselect("Months", options=months, default=months)
    if not selected_months:
        selected_months = months
    selected_months = [m for m in months if m in selected_months]
    compare_mode = st.toggle("Compare Periods", value=False, help="Overlay the previous year's income.")

    st.markdown("---")
    with st.expander("Connect Google Sheets", expanded=False):
        sheet_url = st.text_input("Google Sheet URL", placeholder="https://docs.google.com/spreadsheets/d/...")
        if st.button("Connect Sheet"):
            sheet_id = parse_sheet_id(sheet_url)
            if sheet_id:
                st.session_state["connected_sheet_id"] = sheet_id
            else:
                st.error("Could not find a spreadsheet id in that URL.")
        if st.session_state.get("connected_sheet_id"):
            st.success(f"Sheet id: {st.session_state['connected_sheet_id']}")
            st.caption("Set FINANCIAL_SHEET_ID to this id and share the sheet with the service account.")

    st.markdown("---")
    st.markdown("### Growth Phase Goals")
    targets = Targets()
    st.markdown(
        f"**Hours Target:** {targets.annual_hours:,.0f} hours  \n"
        f"**Monthly Average:** {targets.monthly_hours:,.0f} hours  \n"
        f"**Revenue Target:** {targets.annual_income:,.0f} SAR  \n"
        f"**Monthly Average:** {targets.monthly_income:,.0f} SAR"
    )

filters = DashboardFilters(selected_months=selected_months, compare_mode=compare_mode, targets=targets)
ctx = dc.prepare_context(filters, data_ctx)

if data_ctx.get("note"):
    err = data_ctx.get("error") or {}
    st.warning(data_ctx["note"] + (f": {err.get('message')}" if err.get("message") else ""))

overview = compute_overview(filters, ctx)
services = compute_services(filters, ctx)
utilization = compute_utilization(filters, ctx)
marketing = compute_marketing(filters, ctx)


def pdf_bytes() -> bytes:
    return build_pdf_report(overview, services, utilization, marketing)


filter_summary_html = format_filter_summary(selected_months, months, compare_mode, data_ctx.get("source"))


# ----- Page renderers -----

def render_overview_page():
    render_page_header("Overview", "Home / Overview", filter_summary_html, ctx["filtered_monthly"], pdf_bytes)
    with card("Summary"):
        render_kpi_cards(overview["cards"])
    cols = st.columns(2)
    with cols[0]:
        with card("Total Income vs Target"):
            render_chart(overview["charts"].get("income_trend"))
    with cols[1]:
        with card("Hours Booked vs Target"):
            render_chart(overview["charts"].get("hours_trend"))
    with card("Monthly detail"):
        rows = pd.DataFrame(overview["months"])
        if rows.empty:
            st.info("No monthly rows.")
        else:
            st.dataframe(rows, hide_index=True, use_container_width=True)


def render_services_page():
    render_page_header("Services", "Home / Services", filter_summary_html, ctx["services"], pdf_bytes)
    with card("Revenue Breakdown by Service"):
        render_chart(services["chart"], "No service data.")
        for row in services["breakdown"]:
            st.markdown(f"- {row['label']}")


def render_utilization_page():
    render_page_header("Utilization", "Home / Utilization", filter_summary_html, ctx["filtered_monthly"], pdf_bytes)
    with card("Operational % per Month"):
        render_chart(utilization["chart"])
    with card("Operational Insights & Recommendations"):
        insights = utilization["insights"]
        st.markdown("#### Key observations")
        render_bullets(insights["observations"])
        st.markdown("#### Opportunities")
        render_bullets(insights["opportunities"])
        st.markdown("#### Recommendations")
        render_bullets(insights["recommendations"])


def render_marketing_page():
    render_page_header("Marketing", "Home / Marketing", filter_summary_html, ctx["campaigns"], pdf_bytes)
    summary = marketing["summary"]
    cols = st.columns(4)
    cols[0].metric("Total Spent", dc.format_sar(summary["total_spent"]))
    cols[1].metric("Leads", f"{summary['total_leads']:,.0f}")
    cols[2].metric("Overall CPL", f"{summary['overall_cpl']:.2f} SAR" if summary["overall_cpl"] is not None else "N/A")
    cols[3].metric("Profile Visits", f"{summary['total_profile_visits']:,.0f}")
    with card("Campaigns"):
        render_chart(marketing["chart"], "No campaign data.")
        render_bullets(marketing["highlights"])
        if marketing["campaigns"]:
            st.dataframe(pd.DataFrame(marketing["campaigns"]), hide_index=True, use_container_width=True)


def render_sources_page():
    render_page_header("Data Sources", "Home / Data Sources", filter_summary_html, None, pdf_bytes)
    with card("Google Sheets"):
        st.markdown(
            "- Studio Bookings (Google Sheet)\n"
            "- Financial Data (Google Sheet)\n"
            "- Marketing Campaigns (Google Sheet)\n"
            "- Customer Feedback (Google Sheet)"
        )
        missing = settings.missing_variables()
        if missing:
            st.error(f"Missing environment variables: {', '.join(missing)}")
        else:
            st.success("Credentials configured.")
        st.caption(f"Last fetched: {data_ctx.get('fetched_at')} (source: {data_ctx.get('source')})")


if nav_choice == "Overview":
    render_overview_page()
elif nav_choice == "Services":
    render_services_page()
elif nav_choice == "Utilization":
    render_utilization_page()
elif nav_choice == "Marketing":
    render_marketing_page()
else:
    render_sources_page()

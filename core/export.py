"""CSV and PDF exports of the dashboard.

The CSV mirrors the dashboard's row export: wire column names as the header,
text cells always double-quoted, numbers bare. The PDF is a static report
assembled with ReportLab, with charts rendered through matplotlib.
"""

from __future__ import annotations

import logging
from datetime import datetime
from io import BytesIO
from typing import Any, Dict, List, Optional

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt  # noqa: E402
import pandas as pd  # noqa: E402
from reportlab.lib import colors  # noqa: E402
from reportlab.lib.pagesizes import A4, landscape  # noqa: E402
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet  # noqa: E402
from reportlab.lib.units import inch  # noqa: E402
from reportlab.platypus import Image, PageBreak, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle  # noqa: E402

from core.metrics_utilization import LEVEL_COLORS  # noqa: E402
from core.records import to_wire_frame  # noqa: E402


logger = logging.getLogger(__name__)

CSV_FILENAME = "frame_studio_performance.csv"
PDF_FILENAME = "frame_studio_performance.pdf"
REPORT_TITLE = "Frame Studio Performance"


def _csv_cell(value: object) -> str:
    if value is None or value is pd.NA:
        return ""
    if isinstance(value, str):
        return '"' + value.replace('"', '""') + '"'
    if isinstance(value, bool):
        return "true" if value else "false"
    try:
        if pd.isna(value):
            return ""
    except (TypeError, ValueError):
        pass
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def to_csv_bytes(df: Optional[pd.DataFrame]) -> bytes:
    if df is None or df.empty:
        return b""
    wire = to_wire_frame(df)
    lines = [",".join(str(c) for c in wire.columns)]
    for row in wire.astype(object).itertuples(index=False, name=None):
        lines.append(",".join(_csv_cell(v) for v in row))
    return "\n".join(lines).encode("utf-8")


# ---------------- PDF ----------------

def _fmt_num(value: Any, suffix: str = "") -> str:
    if value is None:
        return "N/A"
    try:
        return f"{float(value):,.0f}{suffix}"
    except (TypeError, ValueError):
        return str(value)


def _fmt_pct(value: Any) -> str:
    return "N/A" if value is None else f"{float(value):.1f}%"


def make_table(data: List[List[Any]], col_widths: Optional[List[float]] = None) -> Table:
    t = Table([[("" if v is None else str(v)) for v in row] for row in data], colWidths=col_widths, hAlign="LEFT", repeatRows=1)
    t.setStyle(
        TableStyle(
            [
                ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                ("FONTSIZE", (0, 0), (-1, -1), 9),
                ("BACKGROUND", (0, 0), (-1, 0), colors.whitesmoke),
                ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
                ("VALIGN", (0, 0), (-1, -1), "TOP"),
                ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, colors.Color(0.98, 0.98, 0.98)]),
            ]
        )
    )
    return t


def _series(months: List[Dict[str, Any]], key: str) -> List[float]:
    return [float("nan") if m.get(key) is None else float(m[key]) for m in months]


def _png(fig) -> BytesIO:
    buf = BytesIO()
    fig.tight_layout()
    fig.savefig(buf, format="png", dpi=150)
    plt.close(fig)
    buf.seek(0)
    return buf


def trend_chart_png(months: List[Dict[str, Any]], value_key: str, target_key: str, title: str) -> Optional[BytesIO]:
    if not months:
        return None
    labels = [m["month"] for m in months]
    fig, ax = plt.subplots(figsize=(6, 3))
    ax.plot(labels, _series(months, value_key), marker="o", color="#8884d8", label="Actual")
    ax.plot(labels, _series(months, target_key), linestyle="--", color="#82ca9d", label="Target")
    if value_key == "income" and any(m.get("previous_income") is not None for m in months):
        ax.plot(labels, _series(months, "previous_income"), linestyle=":", color="#ff7300", label="Previous Year")
    ax.set_title(title, fontsize=10)
    ax.grid(True, linestyle="--", alpha=0.4)
    ax.legend(fontsize=8)
    return _png(fig)


def utilization_chart_png(rows: List[Dict[str, Any]]) -> Optional[BytesIO]:
    if not rows:
        return None
    fig, ax = plt.subplots(figsize=(6, 3))
    ax.bar([r["month"] for r in rows], [r["operational"] for r in rows], color=[LEVEL_COLORS[r["level"]] for r in rows])
    ax.set_title("Operational % per Month", fontsize=10)
    ax.grid(True, axis="y", linestyle="--", alpha=0.4)
    return _png(fig)


def services_chart_png(breakdown: List[Dict[str, Any]]) -> Optional[BytesIO]:
    if not breakdown:
        return None
    fig, ax = plt.subplots(figsize=(5, 3))
    ax.pie(
        [b["value"] for b in breakdown],
        labels=[b["name"] for b in breakdown],
        colors=[b["color"] for b in breakdown],
        autopct="%1.0f%%",
        textprops={"fontsize": 8},
    )
    ax.set_title("Revenue Breakdown by Service", fontsize=10)
    return _png(fig)


def build_pdf_report(
    overview: Dict[str, Any],
    services: Dict[str, Any],
    utilization: Dict[str, Any],
    marketing: Dict[str, Any],
    *,
    title: str = REPORT_TITLE,
) -> bytes:
    buf = BytesIO()
    doc = SimpleDocTemplate(
        buf,
        pagesize=landscape(A4),
        leftMargin=0.6 * inch,
        rightMargin=0.6 * inch,
        topMargin=0.5 * inch,
        bottomMargin=0.5 * inch,
        title=title,
    )
    styles = getSampleStyleSheet()
    small = ParagraphStyle("Small", parent=styles["BodyText"], fontSize=9, leading=11)
    story: List[Any] = [
        Paragraph(title, styles["Title"]),
        Paragraph(f"Generated {datetime.now():%Y-%m-%d %H:%M}", small),
    ]
    if overview.get("note"):
        story.append(Paragraph(str(overview["note"]), small))
    story.append(Spacer(1, 0.15 * inch))

    cards = overview.get("cards", {})
    highest = cards.get("highest_utilization") or {}
    story.append(
        make_table(
            [
                ["Total Income", "Hours Booked", "Avg. Monthly Income", "Highest Utilization"],
                [
                    f"{_fmt_num(cards.get('total_income'), ' SAR')} ({_fmt_pct(cards.get('income_delta_pct'))} vs target)",
                    f"{_fmt_num(cards.get('total_hours'), ' hours')} ({_fmt_pct(cards.get('hours_delta_pct'))} vs target)",
                    f"{_fmt_num(cards.get('avg_monthly_income'), ' SAR')} vs {_fmt_num(cards.get('avg_monthly_target'), ' SAR')}",
                    f"{_fmt_num(highest.get('operational'), '%')} in {highest.get('month', 'N/A')}",
                ],
            ]
        )
    )
    story.append(Spacer(1, 0.2 * inch))

    months = overview.get("months", [])
    charts = [
        trend_chart_png(months, "income", "target", "Total Income vs Target"),
        trend_chart_png(months, "hours", "hour_target", "Hours Booked vs Target"),
    ]
    row = [Image(c, width=4.6 * inch, height=2.3 * inch) for c in charts if c is not None]
    if row:
        story.append(Table([row], hAlign="LEFT"))
        story.append(Spacer(1, 0.2 * inch))

    if months:
        data = [["Month", "Income", "Target", "Hours", "Target Hours", "Operational %"]]
        for m in months:
            data.append(
                [m["month"], _fmt_num(m.get("income")), _fmt_num(m.get("target")), _fmt_num(m.get("hours")),
                 _fmt_num(m.get("hour_target")), _fmt_num(m.get("operational"), "%")]
            )
        story.append(make_table(data))

    story.append(PageBreak())
    breakdown = services.get("breakdown", [])
    util_rows = utilization.get("months", [])
    charts = [services_chart_png(breakdown), utilization_chart_png(util_rows)]
    row = [Image(c, width=4.6 * inch, height=2.6 * inch) for c in charts if c is not None]
    if row:
        story.append(Table([row], hAlign="LEFT"))
        story.append(Spacer(1, 0.2 * inch))

    insights = utilization.get("insights", {})
    for heading, key in [("Observations", "observations"), ("Opportunities", "opportunities"), ("Recommendations", "recommendations")]:
        items = insights.get(key) or []
        if items:
            story.append(Paragraph(heading, styles["Heading3"]))
            for item in items:
                story.append(Paragraph(f"&bull; {item}", small))

    campaigns = marketing.get("campaigns", [])
    if campaigns:
        story.append(Paragraph("Marketing Campaigns", styles["Heading3"]))
        data = [["Campaign", "Spent (SAR)", "Leads", "CPL (SAR)", "Profile Visits"]]
        for c in campaigns:
            cpl = c.get("cpl")
            data.append([c.get("name"), _fmt_num(c.get("spent")), _fmt_num(c.get("leads")),
                         "N/A" if cpl is None else f"{cpl:.2f}", _fmt_num(c.get("profile_visits"))])
        story.append(make_table(data))
        for item in marketing.get("highlights", []):
            story.append(Paragraph(f"&bull; {item}", small))

    doc.build(story)
    pdf = buf.getvalue()
    logger.info("Built PDF report (%d bytes)", len(pdf))
    return pdf

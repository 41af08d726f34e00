from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, Optional

import altair as alt
import pandas as pd

from core.charts import SERIES_COLORS, to_vega_spec
from core.data import column_sum
from core.filters import DashboardFilters


def _num(value: Any) -> Optional[float]:
    if value is None or pd.isna(value):
        return None
    return float(value)


def marketing_summary(campaigns: pd.DataFrame) -> Dict[str, Any]:
    summary: Dict[str, Any] = {
        "campaigns": int(len(campaigns)),
        "total_spent": column_sum(campaigns, "spent"),
        "total_leads": column_sum(campaigns, "leads"),
        "total_profile_visits": column_sum(campaigns, "profile_visits"),
        "overall_cpl": None,
        "avg_spent": None,
        "cpl_min": None,
        "cpl_max": None,
        "best_campaign": None,
    }
    if campaigns.empty:
        return summary

    if summary["total_leads"]:
        summary["overall_cpl"] = round(summary["total_spent"] / summary["total_leads"], 2)
    summary["avg_spent"] = round(summary["total_spent"] / len(campaigns), 2)

    cpl = pd.to_numeric(campaigns["cpl"], errors="coerce").dropna()
    if not cpl.empty:
        summary["cpl_min"] = float(cpl.min())
        summary["cpl_max"] = float(cpl.max())

    visits = pd.to_numeric(campaigns["profile_visits"], errors="coerce")
    if visits.notna().any():
        best = campaigns.loc[visits.idxmax()]
        summary["best_campaign"] = {
            "name": str(best["name"]),
            "profile_visits": _num(best["profile_visits"]),
            "spent": _num(best["spent"]),
        }
    return summary


def marketing_highlights(summary: Dict[str, Any]) -> list:
    out = []
    if summary.get("avg_spent") is not None:
        out.append(f"Average spend was ~{summary['avg_spent']:,.0f} SAR per campaign.")
    if summary.get("cpl_min") is not None:
        out.append(f"Cost per lead ranged from {summary['cpl_min']:.2f} to {summary['cpl_max']:.2f} SAR.")
    best = summary.get("best_campaign")
    if best and best.get("profile_visits") is not None:
        spent = f" for {best['spent']:,.0f} SAR" if best.get("spent") is not None else ""
        out.append(f"Best performance: {best['name']} with {best['profile_visits']:,.0f} profile visits{spent}.")
    return out


def compute_marketing(filters: DashboardFilters, ctx: Dict[str, Any]) -> Dict[str, Any]:
    campaigns: pd.DataFrame = ctx.get("campaigns", pd.DataFrame())
    summary = marketing_summary(campaigns)

    chart = None
    if not campaigns.empty:
        order = campaigns["name"].astype(str).tolist()
        long_df = pd.concat(
            [
                pd.DataFrame({"name": order, "metric": "Spent (SAR)", "value": campaigns["spent"].astype("Float64")}),
                pd.DataFrame({"name": order, "metric": "Leads", "value": campaigns["leads"].astype("Float64")}),
            ],
            ignore_index=True,
        )
        long_df["value"] = long_df["value"].astype(float)
        bar = (
            alt.Chart(long_df)
            .mark_bar()
            .encode(
                x=alt.X("name:N", sort=order, title=None),
                xOffset="metric:N",
                y=alt.Y("value:Q", title=None),
                color=alt.Color(
                    "metric:N",
                    scale=alt.Scale(domain=["Spent (SAR)", "Leads"], range=[SERIES_COLORS["actual"], SERIES_COLORS["target"]]),
                    legend=alt.Legend(title=None, orient="bottom"),
                ),
                tooltip=["name", "metric", alt.Tooltip("value:Q", format=",")],
            )
            .properties(height=300)
        )
        chart = to_vega_spec(bar)

    campaign_rows = []
    for _, r in campaigns.iterrows():
        campaign_rows.append(
            {
                "name": str(r["name"]) if pd.notna(r["name"]) else None,
                "spent": _num(r["spent"]),
                "leads": _num(r["leads"]),
                "cpl": _num(r["cpl"]),
                "profile_visits": _num(r["profile_visits"]),
            }
        )

    return {
        "filters": asdict(filters),
        "summary": summary,
        "highlights": marketing_highlights(summary),
        "campaigns": campaign_rows,
        "chart": chart,
    }

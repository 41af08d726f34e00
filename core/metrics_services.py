from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, List

import altair as alt
import pandas as pd

from core.charts import SERVICE_COLORS, to_vega_spec
from core.data import column_sum, round_half_up
from core.filters import DashboardFilters


def service_breakdown(services: pd.DataFrame, total_income: float) -> pd.DataFrame:
    """Share of each service and the income it represents.

    Shares are relative to the sum of the service values, so the sheet can hold
    either percentages or raw amounts.
    """
    cols = ["name", "value", "share", "share_pct", "sar_value", "label", "color"]
    if services.empty:
        return pd.DataFrame(columns=cols)
    df = services.dropna(subset=["name"]).copy()
    df["value"] = pd.to_numeric(df["value"], errors="coerce").fillna(0).astype(float)
    total_value = float(df["value"].sum())
    if total_value <= 0:
        return pd.DataFrame(columns=cols)

    df["share"] = df["value"] / total_value
    df["share_pct"] = df["share"].apply(lambda s: int(round_half_up(s * 100)))
    df["sar_value"] = df["share"].apply(lambda s: int(round_half_up(total_income * s)))
    df["label"] = [f"{n}: {p}% ({v:,} SAR)" for n, p, v in zip(df["name"], df["share_pct"], df["sar_value"])]
    df["color"] = [SERVICE_COLORS[i % len(SERVICE_COLORS)] for i in range(len(df))]
    df["name"] = df["name"].astype(str)
    return df[cols].reset_index(drop=True)


def compute_services(filters: DashboardFilters, ctx: Dict[str, Any]) -> Dict[str, Any]:
    services: pd.DataFrame = ctx.get("services", pd.DataFrame())
    monthly: pd.DataFrame = ctx.get("filtered_monthly", pd.DataFrame())
    total_income = column_sum(monthly, "income")

    breakdown = service_breakdown(services, total_income)
    chart = None
    if not breakdown.empty:
        names: List[str] = breakdown["name"].tolist()
        pie = (
            alt.Chart(breakdown)
            .mark_arc(outerRadius=100)
            .encode(
                theta=alt.Theta("value:Q", stack=True),
                color=alt.Color(
                    "name:N",
                    sort=names,
                    scale=alt.Scale(domain=names, range=breakdown["color"].tolist()),
                    legend=alt.Legend(title=None, orient="bottom"),
                ),
                tooltip=["name", alt.Tooltip("share:Q", format=".0%"), alt.Tooltip("sar_value:Q", format=",", title="SAR")],
            )
            .properties(height=300)
        )
        chart = to_vega_spec(pie)

    return {
        "filters": asdict(filters),
        "total_income": total_income,
        "breakdown": breakdown.to_dict(orient="records"),
        "chart": chart,
    }

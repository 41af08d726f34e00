from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, List

import altair as alt
import pandas as pd

from core.charts import to_vega_spec
from core.filters import DashboardFilters


LOW_UTILIZATION = 20
MEDIUM_UTILIZATION = 30
SIGNIFICANT_DROP = 10

LEVEL_COLORS = {"Low": "#FF8042", "Medium": "#FFBB28", "High": "#82ca9d"}

GENERAL_RECOMMENDATIONS = [
    "Community building and loyalty programs: engage top clients or creators in special programs.",
    "Dynamic pricing: adjust pricing based on occupancy rates.",
    "Better weekday usage: boost weekday occupancy with corporate or training rentals.",
    "Marketing push for slow months: increase ads focused on event season or content production.",
]


def utilization_level(pct: float) -> str:
    if pct < LOW_UTILIZATION:
        return "Low"
    if pct < MEDIUM_UTILIZATION:
        return "Medium"
    return "High"


def _fmt(month: str, pct: float) -> str:
    return f"{month} ({pct:.0f}%)"


def _join(parts: List[str]) -> str:
    if len(parts) <= 1:
        return "".join(parts)
    return ", ".join(parts[:-1]) + " and " + parts[-1]


def utilization_table(monthly: pd.DataFrame) -> pd.DataFrame:
    if monthly.empty or "operational" not in monthly.columns:
        return pd.DataFrame(columns=["month", "operational", "level"])
    df = monthly[["month", "operational"]].copy()
    df["operational"] = pd.to_numeric(df["operational"], errors="coerce").astype(float)
    df = df.dropna(subset=["operational"]).reset_index(drop=True)
    df["month"] = df["month"].astype(str)
    df["level"] = df["operational"].apply(utilization_level)
    return df


def build_insights(table: pd.DataFrame) -> Dict[str, List[str]]:
    observations: List[str] = []
    opportunities: List[str] = []
    recommendations: List[str] = []
    if table.empty:
        return {"observations": observations, "opportunities": opportunities, "recommendations": recommendations}

    # stable sorts keep sheet order on ties
    top = table.sort_values("operational", ascending=False, kind="mergesort").head(2)
    bottom = table.sort_values("operational", ascending=True, kind="mergesort").head(2)
    observations.append(
        "Highest utilization was in " + _join([_fmt(m, p) for m, p in zip(top["month"], top["operational"])]) + "."
    )
    if len(table) > 2:
        observations.append(
            "Lowest utilization happened in " + _join([_fmt(m, p) for m, p in zip(bottom["month"], bottom["operational"])]) + "."
        )

    ops = table["operational"].tolist()
    months = table["month"].tolist()
    for i in range(1, len(ops)):
        drop = ops[i - 1] - ops[i]
        if drop >= SIGNIFICANT_DROP:
            observations.append(f"{_fmt(months[i], ops[i])} dropped {drop:.0f} points after {_fmt(months[i - 1], ops[i - 1])}.")

    peak = max(ops)
    opportunities.append(f"Utilization never exceeded {peak:.0f}%, leaving capacity for additional business or offers.")
    low_months = table[table["level"] == "Low"]["month"].tolist()
    if low_months:
        opportunities.append(f"Demand dips are visible in {_join(low_months)}.")
    if peak < 100:
        opportunities.append("There is consistent space to grow bookings across all months.")

    off_peak = low_months or bottom["month"].tolist()
    recommendations.append(
        f"Off-peak promotions ({_join(off_peak)}): introduce discounted slots or packages to push usage."
    )
    recommendations.extend(GENERAL_RECOMMENDATIONS)
    return {"observations": observations, "opportunities": opportunities, "recommendations": recommendations}


def compute_utilization(filters: DashboardFilters, ctx: Dict[str, Any]) -> Dict[str, Any]:
    monthly: pd.DataFrame = ctx.get("filtered_monthly", pd.DataFrame())
    table = utilization_table(monthly)

    chart = None
    if not table.empty:
        order = table["month"].tolist()
        bar = (
            alt.Chart(table)
            .mark_bar()
            .encode(
                x=alt.X("month:N", sort=order, title=None),
                y=alt.Y("operational:Q", title="Operational %"),
                color=alt.Color(
                    "level:N",
                    scale=alt.Scale(domain=list(LEVEL_COLORS), range=list(LEVEL_COLORS.values())),
                    legend=alt.Legend(title="Utilization", orient="bottom"),
                ),
                tooltip=["month", alt.Tooltip("operational:Q", format=".0f", title="Operational %"), "level"],
            )
            .properties(height=300)
        )
        chart = to_vega_spec(bar)

    return {
        "filters": asdict(filters),
        "months": table.to_dict(orient="records"),
        "insights": build_insights(table),
        "chart": chart,
    }

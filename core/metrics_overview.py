from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, List, Optional

import pandas as pd

from core.charts import series_vs_target_chart, to_vega_spec
from core.data import column_sum, round_half_up
from core.filters import DashboardFilters


def _as_number(value: Any) -> Optional[float]:
    if value is None or pd.isna(value):
        return None
    return float(value)


def delta_pct(actual: float, target: float) -> Optional[float]:
    """Absolute distance from target in percent, one decimal."""
    if not target:
        return None
    return round(abs((actual / target - 1) * 100), 1)


def target_label(actual: Optional[float], target: Optional[float]) -> Optional[str]:
    if actual is None or not target:
        return None
    if actual >= target:
        return f"{(actual / target - 1) * 100:.1f}% above target"
    return f"{(1 - actual / target) * 100:.1f}% below target"


def yoy_label(current: Optional[float], previous: Optional[float]) -> Optional[str]:
    if current is None or not previous:
        return None
    if current > previous:
        return f"+{(current / previous - 1) * 100:.1f}% YoY"
    return f"-{(1 - current / previous) * 100:.1f}% YoY"


def _month_rows(monthly: pd.DataFrame, comparison: pd.DataFrame, compare_mode: bool) -> List[Dict[str, Any]]:
    prev_income: Dict[str, Optional[float]] = {}
    if compare_mode and not comparison.empty:
        for _, r in comparison.iterrows():
            prev_income.setdefault(str(r["month"]), _as_number(r["income"]))

    rows = []
    for _, r in monthly.iterrows():
        month = str(r["month"])
        income = _as_number(r["income"])
        hours = _as_number(r["hours"])
        row = {
            "month": month,
            "income": income,
            "target": _as_number(r["target"]),
            "hours": hours,
            "hour_target": _as_number(r["hour_target"]),
            "operational": _as_number(r["operational"]),
            "income_label": target_label(income, _as_number(r["target"])),
            "hours_label": target_label(hours, _as_number(r["hour_target"])),
        }
        if compare_mode:
            previous = prev_income.get(month)
            row["previous_income"] = previous
            row["yoy_label"] = yoy_label(income, previous)
        rows.append(row)
    return rows


def compute_overview(filters: DashboardFilters, ctx: Dict[str, Any]) -> Dict[str, Any]:
    monthly: pd.DataFrame = ctx.get("filtered_monthly", pd.DataFrame())
    comparison: pd.DataFrame = ctx.get("comparison", pd.DataFrame())

    total_income = column_sum(monthly, "income")
    total_target = column_sum(monthly, "target")
    total_hours = column_sum(monthly, "hours")
    total_hour_target = column_sum(monthly, "hour_target")
    n_months = int(len(monthly))

    highest = None
    if n_months and "operational" in monthly.columns:
        ops = pd.to_numeric(monthly["operational"], errors="coerce")
        if ops.notna().any():
            r = monthly.loc[ops.idxmax()]
            highest = {"month": str(r["month"]), "operational": float(r["operational"])}

    cards = {
        "total_income": total_income,
        "total_target": total_target,
        "income_vs_target": total_income >= total_target,
        "income_delta_pct": delta_pct(total_income, total_target),
        "total_hours": total_hours,
        "total_hour_target": total_hour_target,
        "hours_vs_target": total_hours >= total_hour_target,
        "hours_delta_pct": delta_pct(total_hours, total_hour_target),
        "avg_monthly_income": round_half_up(total_income / n_months) if n_months else None,
        "avg_monthly_target": filters.targets.monthly_income,
        "highest_utilization": highest,
    }

    charts: Dict[str, Any] = {}
    if n_months:
        income_chart = series_vs_target_chart(
            monthly,
            value_col="income",
            target_col="target",
            value_title="Income (SAR)",
            target_title="Target (SAR)",
            previous=comparison if filters.compare_mode else None,
            previous_title="Previous Year Income",
        )
        hours_chart = series_vs_target_chart(
            monthly,
            value_col="hours",
            target_col="hour_target",
            value_title="Hours Booked",
            target_title="Target Hours",
            axis_format=",",
        )
        charts = {"income_trend": to_vega_spec(income_chart), "hours_trend": to_vega_spec(hours_chart)}

    return {
        "filters": asdict(filters),
        "cards": cards,
        "months": _month_rows(monthly, comparison, filters.compare_mode) if n_months else [],
        "growth_goals": {
            "annual_hours": filters.targets.annual_hours,
            "monthly_hours": filters.targets.monthly_hours,
            "annual_income": filters.targets.annual_income,
            "monthly_income": filters.targets.monthly_income,
        },
        "charts": charts,
        "source": ctx.get("source"),
        "note": ctx.get("note"),
    }

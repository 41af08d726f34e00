from __future__ import annotations

from typing import Any, Dict, List, Optional

import altair as alt
import pandas as pd

alt.data_transformers.disable_max_rows()

SERVICE_COLORS = ["#0088FE", "#00C49F", "#FFBB28", "#FF8042"]
SERIES_COLORS = {"actual": "#8884d8", "target": "#82ca9d", "previous": "#ff7300"}


def to_vega_spec(chart: alt.Chart) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def series_vs_target_chart(
    df: pd.DataFrame,
    *,
    value_col: str,
    target_col: str,
    value_title: str,
    target_title: str,
    axis_format: str = ",.0f",
    previous: Optional[pd.DataFrame] = None,
    previous_title: str = "Previous Year",
) -> alt.Chart:
    """Line chart of a monthly value against its target, with an optional prior-period line."""
    order: List[str] = df["month"].astype(str).tolist()
    frames = [
        pd.DataFrame({"month": order, "value": df[value_col].astype("Float64"), "series": value_title}),
        pd.DataFrame({"month": order, "value": df[target_col].astype("Float64"), "series": target_title}),
    ]
    domain = [value_title, target_title]
    colors = [SERIES_COLORS["actual"], SERIES_COLORS["target"]]
    if previous is not None and not previous.empty:
        frames.append(
            pd.DataFrame(
                {"month": previous["month"].astype(str), "value": previous[value_col].astype("Float64"), "series": previous_title}
            )
        )
        domain.append(previous_title)
        colors.append(SERIES_COLORS["previous"])
    long_df = pd.concat(frames, ignore_index=True)
    long_df["value"] = long_df["value"].astype(float)
    long_df["dashed"] = long_df["series"] != value_title

    return (
        alt.Chart(long_df)
        .mark_line(point=True)
        .encode(
            x=alt.X("month:N", sort=order, title=None),
            y=alt.Y("value:Q", title=None, axis=alt.Axis(format=axis_format, gridDash=[3, 3])),
            color=alt.Color("series:N", scale=alt.Scale(domain=domain, range=colors), legend=alt.Legend(title=None, orient="bottom")),
            strokeDash=alt.StrokeDash("dashed:N", legend=None),
            tooltip=["month", "series", alt.Tooltip("value:Q", format=axis_format)],
        )
        .properties(height=300)
    )

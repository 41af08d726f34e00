from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Optional


@dataclass(frozen=True)
class Targets:
    monthly_income: float = 14000.0
    monthly_hours: float = 100.0
    annual_income: float = 252000.0
    annual_hours: float = 1800.0


@dataclass(frozen=True)
class DashboardFilters:
    selected_months: List[str] = field(default_factory=list)
    compare_mode: bool = False
    targets: Targets = field(default_factory=Targets)


def _as_str_list(values: Optional[Iterable[object]]) -> List[str]:
    if not values:
        return []
    out: List[str] = []
    for v in values:
        if v is None:
            continue
        s = str(v).strip()
        if s:
            out.append(s)
    return out


def _as_float(value: object, default: float) -> float:
    try:
        out = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return default
    return out if out >= 0 else default


def _as_bool(value: object) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return bool(value)


def normalize_filters(raw: dict, *, available_months: Optional[List[str]] = None) -> DashboardFilters:
    available_months = list(available_months or [])

    wanted = set(_as_str_list(raw.get("selected_months")))
    if available_months:
        selected_months = [m for m in available_months if m in wanted]
    else:
        selected_months = _as_str_list(raw.get("selected_months"))
    if not selected_months:
        selected_months = available_months

    defaults = Targets()
    t = raw.get("targets") or {}
    targets = Targets(
        monthly_income=_as_float(t.get("monthly_income"), defaults.monthly_income),
        monthly_hours=_as_float(t.get("monthly_hours"), defaults.monthly_hours),
        annual_income=_as_float(t.get("annual_income"), defaults.annual_income),
        annual_hours=_as_float(t.get("annual_hours"), defaults.annual_hours),
    )

    return DashboardFilters(
        selected_months=selected_months,
        compare_mode=_as_bool(raw.get("compare_mode", False)),
        targets=targets,
    )

from __future__ import annotations

from typing import List

from pydantic import BaseModel, Field


class TargetsModel(BaseModel):
    monthly_income: float = 14000.0
    monthly_hours: float = 100.0
    annual_income: float = 252000.0
    annual_hours: float = 1800.0


class DashboardFiltersModel(BaseModel):
    selected_months: List[str] = Field(default_factory=list)
    compare_mode: bool = False
    targets: TargetsModel = Field(default_factory=TargetsModel)

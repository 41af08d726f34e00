from __future__ import annotations

from typing import Dict

import pandas as pd

from core.records import CAMPAIGNS, MONTHLY, SERVICES, records_to_frame


SAMPLE_MONTHLY = [
    {"month": "Sep", "income": 12800, "target": 14000, "hours": 85, "hour_target": 100, "operational": 20},
    {"month": "Oct", "income": 10500, "target": 14000, "hours": 75, "hour_target": 100, "operational": 15},
    {"month": "Nov", "income": 13700, "target": 14000, "hours": 90, "hour_target": 100, "operational": 25},
    {"month": "Dec", "income": 14100, "target": 14000, "hours": 95, "hour_target": 100, "operational": 25},
    {"month": "Jan", "income": 15800, "target": 14000, "hours": 110, "hour_target": 100, "operational": 35},
    {"month": "Feb", "income": 14900, "target": 14000, "hours": 105, "hour_target": 100, "operational": 30},
    {"month": "Mar", "income": 11300, "target": 14000, "hours": 80, "hour_target": 100, "operational": 17},
    {"month": "Apr", "income": 9800, "target": 14000, "hours": 70, "hour_target": 100, "operational": 14},
]

SAMPLE_SERVICES = [
    {"name": "Studio Rental", "value": 65},
    {"name": "Equipment Rental", "value": 20},
    {"name": "Post-Production", "value": 10},
    {"name": "Workshops", "value": 5},
]

SAMPLE_CAMPAIGNS = [
    {"name": "Campaign 1", "spent": 799, "leads": 82, "cpl": 9.74, "profile_visits": 468},
    {"name": "Campaign 2", "spent": 850, "leads": 65, "cpl": 13.08, "profile_visits": 320},
    {"name": "Campaign 3", "spent": 799, "leads": 125, "cpl": 6.39, "profile_visits": 412},
]

# Previous-year series shown in compare mode.
SAMPLE_PREVIOUS_YEAR = [
    {"month": "Sep", "income": 9800, "target": 12000, "hours": 70, "hour_target": 85, "operational": 15},
    {"month": "Oct", "income": 8500, "target": 12000, "hours": 65, "hour_target": 85, "operational": 12},
    {"month": "Nov", "income": 10700, "target": 12000, "hours": 75, "hour_target": 85, "operational": 20},
    {"month": "Dec", "income": 11100, "target": 12000, "hours": 80, "hour_target": 85, "operational": 22},
    {"month": "Jan", "income": 12800, "target": 12000, "hours": 90, "hour_target": 85, "operational": 28},
    {"month": "Feb", "income": 11900, "target": 12000, "hours": 85, "hour_target": 85, "operational": 25},
    {"month": "Mar", "income": 9300, "target": 12000, "hours": 70, "hour_target": 85, "operational": 15},
    {"month": "Apr", "income": 7800, "target": 12000, "hours": 60, "hour_target": 85, "operational": 12},
]


def sample_frames() -> Dict[str, pd.DataFrame]:
    return {
        MONTHLY: records_to_frame(MONTHLY, SAMPLE_MONTHLY),
        SERVICES: records_to_frame(SERVICES, SAMPLE_SERVICES),
        CAMPAIGNS: records_to_frame(CAMPAIGNS, SAMPLE_CAMPAIGNS),
    }


def comparison_frame() -> pd.DataFrame:
    return records_to_frame(MONTHLY, SAMPLE_PREVIOUS_YEAR)

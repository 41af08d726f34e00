from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from functools import lru_cache
from typing import Any, Callable, Dict, List, Optional

import pandas as pd

from core.config import CAMPAIGNS_RANGE, MONTHLY_RANGE, SERVICES_RANGE, DashboardSettings, load_settings
from core.filters import DashboardFilters, normalize_filters
from core.records import CAMPAIGNS, MONTHLY, SERVICES, empty_frame, rows_to_frame, to_wire_records
from core.sample_data import comparison_frame, sample_frames
from core.sheets import SheetsClient, wrap_error


logger = logging.getLogger(__name__)

NOTE_MISSING_ENV = "Using mock data due to missing environment variables"
NOTE_API_ERROR = "Using mock data due to API error"

ClientFactory = Callable[[DashboardSettings], Any]


def round_half_up(value: object, ndigits: int = 0) -> Optional[float]:
    if value is None or pd.isna(value):
        return None
    q = Decimal(10) ** -ndigits
    return float(Decimal(str(value)).quantize(q, rounding=ROUND_HALF_UP))


def format_sar(value: object) -> str:
    if value is None or pd.isna(value):
        return "N/A"
    return f"{float(value):,.0f} SAR"


def column_sum(df: pd.DataFrame, col: str) -> float:
    if df.empty or col not in df.columns:
        return 0.0
    return float(pd.to_numeric(df[col], errors="coerce").fillna(0).sum())


def month_labels(df: pd.DataFrame) -> List[str]:
    if df.empty or "month" not in df.columns:
        return []
    seen: List[str] = []
    for m in df["month"].dropna().astype(str):
        if m not in seen:
            seen.append(m)
    return seen


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def fetch_sheet_frames(client: Any, settings: DashboardSettings) -> Dict[str, pd.DataFrame]:
    monthly_rows = client.get_values(settings.financial_sheet_id, MONTHLY_RANGE)
    service_rows = client.get_values(settings.financial_sheet_id, SERVICES_RANGE)
    campaign_rows = client.get_values(settings.marketing_sheet_id, CAMPAIGNS_RANGE)
    return {
        MONTHLY: rows_to_frame(MONTHLY, monthly_rows),
        SERVICES: rows_to_frame(SERVICES, service_rows),
        CAMPAIGNS: rows_to_frame(CAMPAIGNS, campaign_rows),
    }


def _context(frames: Dict[str, pd.DataFrame], *, source: str, note: Optional[str] = None, error: Optional[dict] = None) -> Dict[str, object]:
    monthly = frames.get(MONTHLY, empty_frame(MONTHLY))
    return {
        "monthly": monthly,
        "services": frames.get(SERVICES, empty_frame(SERVICES)),
        "campaigns": frames.get(CAMPAIGNS, empty_frame(CAMPAIGNS)),
        "comparison": comparison_frame(),
        "months": month_labels(monthly),
        "source": source,
        "note": note,
        "error": error,
        "fetched_at": _now_iso(),
    }


def _load_from_sheets(settings: DashboardSettings, client_factory: Optional[ClientFactory]) -> Dict[str, object]:
    missing = settings.missing_variables()
    if missing:
        logger.warning("Missing required environment variables (%s), falling back to mock data", ", ".join(missing))
        return _context(sample_frames(), source="mock", note=NOTE_MISSING_ENV)

    factory = client_factory or SheetsClient.from_settings
    try:
        client = factory(settings)
        frames = fetch_sheet_frames(client, settings)
    except Exception as exc:
        err = wrap_error(exc)
        logger.error("Error fetching Google Sheets data: %s", err.message, exc_info=True)
        return _context(sample_frames(), source="mock", note=NOTE_API_ERROR, error=err.as_dict())

    logger.info(
        "Loaded %d monthly, %d service, %d campaign rows from Google Sheets",
        len(frames[MONTHLY]),
        len(frames[SERVICES]),
        len(frames[CAMPAIGNS]),
    )
    return _context(frames, source="sheets")


@lru_cache(maxsize=4)
def _load_dashboard_data_cached(
    settings: DashboardSettings, bucket: int, client_factory: Optional[ClientFactory]
) -> Dict[str, object]:
    return _load_from_sheets(settings, client_factory)


def clear_cache() -> None:
    _load_dashboard_data_cached.cache_clear()


def load_dashboard_data(
    settings: Optional[DashboardSettings] = None,
    *,
    use_mock: bool = False,
    client_factory: Optional[ClientFactory] = None,
) -> Dict[str, object]:
    if use_mock:
        return _context(sample_frames(), source="mock")
    settings = settings or load_settings()
    bucket = int(time.time() // settings.cache_ttl)
    return dict(_load_dashboard_data_cached(settings, bucket, client_factory))


def prepare_context(filters: dict | DashboardFilters, data_ctx: Dict[str, object]) -> Dict[str, object]:
    monthly: pd.DataFrame = data_ctx.get("monthly", empty_frame(MONTHLY)).copy()
    available_months = data_ctx.get("months") or month_labels(monthly)
    filt = filters if isinstance(filters, DashboardFilters) else normalize_filters(filters, available_months=available_months)

    filtered_monthly = monthly
    if not monthly.empty and filt.selected_months:
        filtered_monthly = monthly[monthly["month"].isin(filt.selected_months)].reset_index(drop=True)

    comparison = pd.DataFrame()
    if filt.compare_mode:
        comparison = data_ctx.get("comparison", empty_frame(MONTHLY)).copy()
        if not comparison.empty and filt.selected_months:
            comparison = comparison[comparison["month"].isin(filt.selected_months)].reset_index(drop=True)

    return {
        "filters": filt,
        "filtered_monthly": filtered_monthly,
        "monthly": monthly,
        "services": data_ctx.get("services", empty_frame(SERVICES)).copy(),
        "campaigns": data_ctx.get("campaigns", empty_frame(CAMPAIGNS)).copy(),
        "comparison": comparison,
        "source": data_ctx.get("source"),
        "note": data_ctx.get("note"),
        "error": data_ctx.get("error"),
    }


def sheets_payload(data_ctx: Dict[str, object]) -> Dict[str, object]:
    payload: Dict[str, object] = {
        "monthlyData": to_wire_records(MONTHLY, data_ctx.get("monthly")),
        "serviceData": to_wire_records(SERVICES, data_ctx.get("services")),
        "marketingData": to_wire_records(CAMPAIGNS, data_ctx.get("campaigns")),
    }
    if data_ctx.get("error"):
        payload["_error"] = data_ctx["error"]
    if data_ctx.get("note"):
        payload["_note"] = data_ctx["note"]
    return payload

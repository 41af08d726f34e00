from __future__ import annotations

import logging
import math
import os
from typing import Any, Dict, Tuple

import numpy as np
import pandas as pd
from fastapi import FastAPI, Query
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from api.schemas import DashboardFiltersModel
from core.config import load_settings
from core.data import clear_cache, load_dashboard_data, prepare_context, sheets_payload
from core.export import CSV_FILENAME, PDF_FILENAME, build_pdf_report, to_csv_bytes
from core.filters import DashboardFilters, normalize_filters
from core.metrics_debug import compute_env_check, probe_sheets, run_full_diagnostics
from core.metrics_marketing import compute_marketing
from core.metrics_overview import compute_overview
from core.metrics_services import compute_services
from core.metrics_utilization import compute_utilization


app = FastAPI(title="Studio Dashboard API", version="0.1.0")
logger = logging.getLogger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://127.0.0.1:3000", "http://localhost:8501"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _filters_from_model(model: DashboardFiltersModel, *, available_months: list[str]) -> DashboardFilters:
    raw = model.model_dump()
    return normalize_filters(raw, available_months=available_months)


def _json(data: object, status_code: int = 200) -> JSONResponse:
    """Return JSON with safe encoding for pandas/numpy objects."""

    def _safe_float(value: object) -> float | None:
        try:
            out = float(value)  # type: ignore[arg-type]
        except Exception:
            return None
        if math.isnan(out) or math.isinf(out):
            return None
        return out

    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(
            data,
            custom_encoder={
                type(pd.NA): lambda _: None,
                np.integer: int,
                float: _safe_float,
                np.floating: _safe_float,
                np.bool_: bool,
                np.ndarray: lambda arr: arr.tolist(),
                pd.Timestamp: lambda ts: ts.isoformat(),
            },
        ),
    )


def _error(exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=500, content={"error": str(exc), "type": type(exc).__name__})


def _page_context(filters: DashboardFiltersModel, mock: bool) -> Tuple[DashboardFilters, Dict[str, Any]]:
    data_ctx = load_dashboard_data(use_mock=mock)
    f = _filters_from_model(filters, available_months=data_ctx.get("months", []))
    return f, prepare_context(f, data_ctx)


# ---------------- Sheets data + diagnostics ----------------

@app.get("/api/sheets")
def sheets(mock: bool = Query(default=False), health: bool = Query(default=False)):
    if health:
        payload = sheets_payload(load_dashboard_data(use_mock=True))
        return _json({"status": "ok", **payload})
    return _json(sheets_payload(load_dashboard_data(use_mock=mock)))


@app.get("/api/sheets-minimal")
def sheets_minimal():
    logger.info("Starting minimal Google Sheets API test")
    settings = load_settings()
    missing = settings.missing_variables()
    if missing:
        return JSONResponse(status_code=500, content={"error": f"Missing {missing[0]}"})
    result = probe_sheets(settings)
    return _json(result, status_code=200 if result.get("success") else 500)


@app.get("/api/debug-sheets")
def debug_sheets():
    try:
        return _json(compute_env_check())
    except Exception as exc:
        logger.exception("debug_sheets failed")
        return JSONResponse(status_code=500, content={"status": "error", "message": str(exc)})


@app.get("/api/debug-full")
def debug_full():
    include_trace = os.environ.get("APP_ENV") == "development"
    result = run_full_diagnostics(load_settings(), include_trace=include_trace)
    return _json(result, status_code=200 if result.get("success") else 500)


@app.get("/meta/months")
def meta_months(mock: bool = Query(default=False)):
    try:
        data_ctx = load_dashboard_data(use_mock=mock)
        return _json({"months": data_ctx.get("months", []), "source": data_ctx.get("source")})
    except Exception as exc:
        logger.exception("meta_months failed")
        return _error(exc)


@app.post("/refresh")
def refresh():
    clear_cache()
    logger.info("Dashboard data cache cleared")
    return _json({"refreshed": True})


# ---------------- Dashboard pages ----------------

@app.post("/overview")
def overview(filters: DashboardFiltersModel, mock: bool = Query(default=False)):
    try:
        f, ctx = _page_context(filters, mock)
        return _json(compute_overview(f, ctx))
    except Exception as exc:
        logger.exception("overview failed")
        return _error(exc)


@app.post("/services")
def services(filters: DashboardFiltersModel, mock: bool = Query(default=False)):
    try:
        f, ctx = _page_context(filters, mock)
        return _json(compute_services(f, ctx))
    except Exception as exc:
        logger.exception("services failed")
        return _error(exc)


@app.post("/utilization")
def utilization(filters: DashboardFiltersModel, mock: bool = Query(default=False)):
    try:
        f, ctx = _page_context(filters, mock)
        return _json(compute_utilization(f, ctx))
    except Exception as exc:
        logger.exception("utilization failed")
        return _error(exc)


@app.post("/marketing")
def marketing(filters: DashboardFiltersModel, mock: bool = Query(default=False)):
    try:
        f, ctx = _page_context(filters, mock)
        return _json(compute_marketing(f, ctx))
    except Exception as exc:
        logger.exception("marketing failed")
        return _error(exc)


# ---------------- Exports ----------------

@app.post("/export/csv/{page}")
def export_csv(page: str, filters: DashboardFiltersModel, mock: bool = Query(default=False)):
    _, ctx = _page_context(filters, mock)

    export_df = None
    filename = CSV_FILENAME
    if page == "monthly":
        export_df = ctx.get("filtered_monthly")
    elif page == "services":
        export_df = ctx.get("services")
        filename = "services.csv"
    elif page == "campaigns":
        export_df = ctx.get("campaigns")
        filename = "campaigns.csv"
    else:
        export_df = pd.DataFrame()
        filename = f"{page}.csv"

    csv_bytes = to_csv_bytes(export_df)
    return Response(content=csv_bytes, media_type="text/csv", headers={"Content-Disposition": f"attachment; filename={filename}"})


@app.post("/export/pdf")
def export_pdf(filters: DashboardFiltersModel, mock: bool = Query(default=False)):
    try:
        f, ctx = _page_context(filters, mock)
        pdf = build_pdf_report(
            compute_overview(f, ctx),
            compute_services(f, ctx),
            compute_utilization(f, ctx),
            compute_marketing(f, ctx),
        )
    except Exception as exc:
        logger.exception("export_pdf failed")
        return _error(exc)
    return Response(content=pdf, media_type="application/pdf", headers={"Content-Disposition": f"attachment; filename={PDF_FILENAME}"})

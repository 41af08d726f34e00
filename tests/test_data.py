"""
Fetch-and-normalize tests (tests/test_data.py)

Covers the three data paths: Google Sheets success, missing credentials and
API failure (both fall back to the sample records), plus caching and the
filtered page context.
"""
from types import SimpleNamespace

import pytest

from core.config import load_settings
from core.data import (
    NOTE_API_ERROR,
    NOTE_MISSING_ENV,
    clear_cache,
    load_dashboard_data,
    prepare_context,
    sheets_payload,
)
from core.filters import DashboardFilters
from core.sheets import SheetsError

from conftest import CONFIGURED_ENV, FakeSheetsClient


def _factory(client):
    calls = []

    def factory(settings):
        calls.append(settings)
        return client

    factory.calls = calls
    return factory


class TestLoadDashboardData:
    def test_sheets_success(self):
        client = FakeSheetsClient()
        ctx = load_dashboard_data(load_settings(CONFIGURED_ENV), client_factory=_factory(client))
        assert ctx["source"] == "sheets"
        assert ctx["note"] is None and ctx["error"] is None
        assert ctx["months"] == ["Sep", "Oct", "Nov"]
        assert ctx["monthly"].loc[0, "income"] == 12
        assert list(ctx["services"]["name"]) == ["Studio Rental", "Workshops"]
        assert ctx["campaigns"].loc[0, "cpl"] == pytest.approx(10.0)

    def test_campaigns_read_from_marketing_sheet(self):
        client = FakeSheetsClient()
        load_dashboard_data(load_settings(CONFIGURED_ENV), client_factory=_factory(client))
        assert ("financial-sheet-id", "Monthly!A2:G") in client.calls
        assert ("financial-sheet-id", "Services!A2:B") in client.calls
        assert ("marketing-sheet-id", "Campaigns!A2:E") in client.calls

    def test_missing_env_falls_back_to_sample(self):
        factory = _factory(FakeSheetsClient())
        ctx = load_dashboard_data(load_settings({}), client_factory=factory)
        assert ctx["source"] == "mock"
        assert ctx["note"] == NOTE_MISSING_ENV
        assert len(ctx["monthly"]) == 8
        assert factory.calls == []

    def test_api_error_falls_back_with_error_info(self):
        client = FakeSheetsClient(fail=SheetsError("The caller does not have permission", code=403))
        ctx = load_dashboard_data(load_settings(CONFIGURED_ENV), client_factory=_factory(client))
        assert ctx["source"] == "mock"
        assert ctx["note"] == NOTE_API_ERROR
        assert ctx["error"] == {"message": "The caller does not have permission", "code": 403}
        assert list(ctx["services"]["name"])[0] == "Studio Rental"

    def test_client_construction_error_falls_back(self):
        def factory(settings):
            raise ValueError("Could not deserialize key data")

        ctx = load_dashboard_data(load_settings(CONFIGURED_ENV), client_factory=factory)
        assert ctx["note"] == NOTE_API_ERROR
        assert ctx["error"]["message"] == "Could not deserialize key data"
        assert ctx["error"]["code"] is None

    def test_empty_ranges_are_not_replaced_by_sample(self):
        client = FakeSheetsClient(values={})
        ctx = load_dashboard_data(load_settings(CONFIGURED_ENV), client_factory=_factory(client))
        assert ctx["source"] == "sheets"
        assert ctx["monthly"].empty and ctx["services"].empty and ctx["campaigns"].empty
        assert ctx["months"] == []

    def test_mock_requested(self):
        ctx = load_dashboard_data(use_mock=True)
        assert ctx["source"] == "mock"
        assert ctx["note"] is None
        assert ctx["months"][0] == "Sep" and ctx["months"][-1] == "Apr"

    def test_results_are_cached_until_cleared(self):
        factory = _factory(FakeSheetsClient())
        settings = load_settings(CONFIGURED_ENV)
        load_dashboard_data(settings, client_factory=factory)
        load_dashboard_data(settings, client_factory=factory)
        assert len(factory.calls) == 1
        clear_cache()
        load_dashboard_data(settings, client_factory=factory)
        assert len(factory.calls) == 2

    def test_results_are_reused_within_ttl(self, monkeypatch):
        now = [1000.0]
        monkeypatch.setattr("core.data.time", SimpleNamespace(time=lambda: now[0]))
        factory = _factory(FakeSheetsClient())
        settings = load_settings(dict(CONFIGURED_ENV, DASHBOARD_CACHE_TTL="60"))

        load_dashboard_data(settings, client_factory=factory)
        now[0] = 1019.0
        load_dashboard_data(settings, client_factory=factory)
        assert len(factory.calls) == 1

        now[0] = 1020.0
        ctx = load_dashboard_data(settings, client_factory=factory)
        assert len(factory.calls) == 2
        assert ctx["source"] == "sheets"



class TestPrepareContext:
    def test_month_filter_keeps_sheet_order(self):
        data_ctx = load_dashboard_data(use_mock=True)
        ctx = prepare_context({"selected_months": ["Feb", "Sep"]}, data_ctx)
        assert list(ctx["filtered_monthly"]["month"]) == ["Sep", "Feb"]
        assert ctx["comparison"].empty

    def test_blank_filter_means_all_months(self):
        data_ctx = load_dashboard_data(use_mock=True)
        ctx = prepare_context({}, data_ctx)
        assert len(ctx["filtered_monthly"]) == 8
        assert ctx["filters"].selected_months == data_ctx["months"]

    def test_compare_mode_exposes_previous_year(self):
        data_ctx = load_dashboard_data(use_mock=True)
        ctx = prepare_context(DashboardFilters(selected_months=["Jan"], compare_mode=True), data_ctx)
        assert list(ctx["comparison"]["month"]) == ["Jan"]
        assert ctx["comparison"].loc[0, "income"] == 12800

    def test_does_not_mutate_source_frames(self):
        data_ctx = load_dashboard_data(use_mock=True)
        ctx = prepare_context({"selected_months": ["Jan"]}, data_ctx)
        ctx["monthly"].loc[0, "income"] = 0
        assert data_ctx["monthly"].loc[0, "income"] == 12800

    def test_string_false_keeps_compare_off(self):
        data_ctx = load_dashboard_data(use_mock=True)
        ctx = prepare_context({"compare_mode": "false"}, data_ctx)
        assert ctx["filters"].compare_mode is False
        assert ctx["comparison"].empty


class TestSheetsPayload:
    def test_wire_shape(self):
        payload = sheets_payload(load_dashboard_data(use_mock=True))
        assert set(payload) == {"monthlyData", "serviceData", "marketingData"}
        assert payload["monthlyData"][0] == {
            "month": "Sep", "income": 12800, "target": 14000, "hours": 85, "hourTarget": 100, "operational": 20,
        }
        assert payload["marketingData"][0]["profileVisits"] == 468
        assert payload["marketingData"][0]["cpl"] == pytest.approx(9.74)

    def test_fallback_markers(self):
        client = FakeSheetsClient(fail=SheetsError("boom", code=500))
        payload = sheets_payload(load_dashboard_data(load_settings(CONFIGURED_ENV), client_factory=_factory(client)))
        assert payload["_note"] == NOTE_API_ERROR
        assert payload["_error"] == {"message": "boom", "code": 500}

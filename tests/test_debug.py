"""
Connection diagnostics tests (tests/test_debug.py)
"""
from conftest import CONFIGURED_ENV, FakeSheetsClient

from core.config import load_settings
from core.metrics_debug import compute_env_check, probe_sheets, run_full_diagnostics
from core.sheets import SheetsError


def _factory(client):
    return lambda settings: client


def test_env_check_reports_presence():
    result = compute_env_check({"GOOGLE_SERVICE_ACCOUNT_EMAIL": "svc@example.com", "FINANCIAL_SHEET_ID": " ", "APP_ENV": "development"})
    assert result["status"] == "API endpoint reachable"
    assert result["environment"] == {"app_env": "development"}
    assert result["envVarsPresent"]["GOOGLE_SERVICE_ACCOUNT_EMAIL"] is True
    assert result["envVarsPresent"]["FINANCIAL_SHEET_ID"] is False
    assert result["missingVars"] == ["GOOGLE_PRIVATE_KEY", "FINANCIAL_SHEET_ID", "BOOKINGS_SHEET_ID", "MARKETING_SHEET_ID"]


def test_env_check_all_present():
    env = dict(CONFIGURED_ENV, BOOKINGS_SHEET_ID="bookings-sheet-id")
    assert compute_env_check(env)["missingVars"] is None


class TestFullDiagnostics:
    def test_missing_env_stops_at_first_step(self):
        result = run_full_diagnostics(load_settings({}), _factory(FakeSheetsClient()))
        assert result["success"] is False
        assert result["steps"] == ["Checking environment variables"]
        error = result["errors"][0]
        assert error["step"] == "Checking environment variables"
        assert error["message"] == (
            "Missing environment variables: GOOGLE_SERVICE_ACCOUNT_EMAIL, GOOGLE_PRIVATE_KEY, FINANCIAL_SHEET_ID"
        )
        assert error["details"] == "No detailed error information"
        assert "stack" not in error

    def test_malformed_key(self):
        settings = load_settings(dict(CONFIGURED_ENV, GOOGLE_PRIVATE_KEY="not-a-key"))
        result = run_full_diagnostics(settings, _factory(FakeSheetsClient()))
        assert result["errors"][0]["step"] == "Checking private key format"
        assert "BEGIN marker" in result["errors"][0]["message"]

    def test_auth_failure_keeps_code(self):
        client = FakeSheetsClient(fail=SheetsError("invalid_grant", code=401, details="Invalid JWT Signature."))
        result = run_full_diagnostics(load_settings(CONFIGURED_ENV), _factory(client))
        assert result["success"] is False
        assert result["errors"][0] == {
            "step": "Testing authentication",
            "message": "invalid_grant",
            "code": 401,
            "details": "Invalid JWT Signature.",
        }

    def test_trace_included_on_request(self):
        result = run_full_diagnostics(load_settings({}), include_trace=True)
        assert "Traceback" in result["errors"][0]["stack"]

    def test_success(self):
        values = {"A1:C5": [["Month", "Income", "Target"], ["Sep", "12800", "14000"]]}
        client = FakeSheetsClient(values=values)
        result = run_full_diagnostics(load_settings(CONFIGURED_ENV), _factory(client))
        assert result["success"] is True
        assert len(result["steps"]) == 6
        assert result["errors"] == []
        assert result["sheetInfo"] == {
            "title": "Frame Studio",
            "sheets": ["Monthly", "Services", "Campaigns"],
            "sampleData": values["A1:C5"],
        }
        assert client.authorized
        assert client.calls == [("financial-sheet-id", "A1:C5")]


class TestProbe:
    def test_metadata(self):
        result = probe_sheets(load_settings(CONFIGURED_ENV), _factory(FakeSheetsClient()))
        assert result == {"success": True, "spreadsheetTitle": "Frame Studio", "sheets": ["Monthly", "Services", "Campaigns"]}

    def test_failure(self):
        client = FakeSheetsClient(fail=SheetsError("Requested entity was not found.", code=404))
        result = probe_sheets(load_settings(CONFIGURED_ENV), _factory(client))
        assert result["success"] is False
        assert result["code"] == 404
        assert result["error"] == "Requested entity was not found."

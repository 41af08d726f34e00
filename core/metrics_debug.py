from __future__ import annotations

import logging
import os
import traceback
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Mapping, Optional

from core.config import SAMPLE_RANGE, DashboardSettings, check_private_key, env_report, normalize_private_key
from core.sheets import SheetsClient, wrap_error


logger = logging.getLogger(__name__)

ClientFactory = Callable[[DashboardSettings], Any]


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def compute_env_check(env: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
    env = os.environ if env is None else env
    report = env_report(env)
    return {
        "status": "API endpoint reachable",
        "timestamp": _timestamp(),
        "environment": {"app_env": env.get("APP_ENV")},
        "envVarsPresent": report["present"],
        "missingVars": report["missing"],
    }


def probe_sheets(settings: DashboardSettings, client_factory: Optional[ClientFactory] = None) -> Dict[str, Any]:
    """Fetch spreadsheet metadata only (no cell content)."""
    factory = client_factory or SheetsClient.from_settings
    try:
        client = factory(settings)
        meta = client.get_metadata(settings.financial_sheet_id)
    except Exception as exc:
        err = wrap_error(exc)
        logger.error("Google Sheets API error: %s", err.message, exc_info=True)
        return {"success": False, "error": err.message, "code": err.code, "details": err.details}
    return {"success": True, "spreadsheetTitle": meta.get("title"), "sheets": meta.get("sheets", [])}


def run_full_diagnostics(
    settings: DashboardSettings,
    client_factory: Optional[ClientFactory] = None,
    *,
    include_trace: bool = False,
) -> Dict[str, Any]:
    info: Dict[str, Any] = {
        "timestamp": _timestamp(),
        "steps": [],
        "errors": [],
        "success": False,
        "sheetInfo": None,
    }
    factory = client_factory or SheetsClient.from_settings
    steps = info["steps"]
    try:
        steps.append("Checking environment variables")
        missing = settings.missing_variables()
        if missing:
            raise ValueError(f"Missing environment variables: {', '.join(missing)}")

        steps.append("Checking private key format")
        check_private_key(normalize_private_key(settings.private_key))

        steps.append("Initializing authentication")
        client = factory(settings)

        steps.append("Testing authentication")
        client.authorize()

        steps.append("Fetching spreadsheet metadata")
        meta = client.get_metadata(settings.financial_sheet_id)

        steps.append("Fetching sample data")
        sample = client.get_values(settings.financial_sheet_id, SAMPLE_RANGE)
    except Exception as exc:
        err = wrap_error(exc)
        logger.warning("Diagnostics failed at step %r: %s", steps[-1] if steps else None, err.message)
        entry = {"step": steps[-1] if steps else None, "message": err.message, "code": err.code, "details": err.details}
        if include_trace:
            entry["stack"] = traceback.format_exc()
        info["errors"].append(entry)
        return info

    info["success"] = True
    info["sheetInfo"] = {"title": meta.get("title"), "sheets": meta.get("sheets", []), "sampleData": sample}
    return info

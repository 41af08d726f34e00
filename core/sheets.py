"""Read-only Google Sheets access via gspread and a service account."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import gspread
from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request
from google.oauth2.service_account import Credentials
from gspread.exceptions import APIError

from core.config import READONLY_SCOPE, TOKEN_URI, DashboardSettings, normalize_private_key


logger = logging.getLogger(__name__)


class SheetsError(Exception):
    def __init__(self, message: str, code: Optional[int] = None, details: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or "No detailed error information"

    def as_dict(self) -> Dict[str, Any]:
        return {"message": self.message, "code": self.code}


def _error_code(exc: BaseException) -> Optional[int]:
    code = getattr(exc, "code", None)
    if isinstance(code, int):
        return code
    response = getattr(exc, "response", None)
    status = getattr(response, "status_code", None)
    return status if isinstance(status, int) else None


def _payload_details(error: Any) -> Optional[str]:
    if not isinstance(error, dict):
        return None
    errors = error.get("errors") or []
    if errors and isinstance(errors[0], dict) and errors[0].get("message"):
        return str(errors[0]["message"])
    if error.get("message"):
        return str(error["message"])
    return None


def _error_details(exc: BaseException) -> Optional[str]:
    response = getattr(exc, "response", None)
    if response is None:
        return None
    try:
        payload = response.json()
    except Exception:
        return None
    return _payload_details(payload.get("error") if isinstance(payload, dict) else None)


def _find_api_error(exc: BaseException) -> Optional[APIError]:
    """First gspread APIError in the cause/context chain.

    ``open_by_key`` re-raises 403 as a bare ``PermissionError`` and 404 as
    ``SpreadsheetNotFound``, keeping the APIError only as ``__cause__``.
    """
    seen = set()
    current: Optional[BaseException] = exc
    while current is not None and id(current) not in seen:
        if isinstance(current, APIError):
            return current
        seen.add(id(current))
        current = current.__cause__ or current.__context__
    return None


def _from_api_error(api_error: APIError, fallback: str) -> SheetsError:
    error = dict(api_error.error or {})
    code = api_error.code if isinstance(api_error.code, int) and api_error.code > 0 else None
    if code is None:
        status = getattr(api_error.response, "status_code", None)
        code = status if isinstance(status, int) else None
    message = str(error.get("message") or "") or fallback
    return SheetsError(message, code=code, details=_payload_details(error))


def wrap_error(exc: BaseException) -> SheetsError:
    if isinstance(exc, SheetsError):
        return exc
    fallback = str(exc) or type(exc).__name__
    api_error = _find_api_error(exc)
    if api_error is not None:
        return _from_api_error(api_error, fallback)
    return SheetsError(fallback, code=_error_code(exc), details=_error_details(exc))


def build_credentials(settings: DashboardSettings) -> Credentials:
    info = {
        "type": "service_account",
        "client_email": settings.service_account_email,
        "private_key": normalize_private_key(settings.private_key),
        "token_uri": TOKEN_URI,
    }
    try:
        return Credentials.from_service_account_info(info, scopes=[READONLY_SCOPE])
    except (ValueError, GoogleAuthError) as exc:
        raise wrap_error(exc) from exc


class SheetsClient:
    def __init__(self, credentials: Credentials, gc: Optional[gspread.Client] = None):
        self.credentials = credentials
        self.gc = gc or gspread.authorize(credentials)

    @classmethod
    def from_settings(cls, settings: DashboardSettings) -> "SheetsClient":
        return cls(build_credentials(settings))

    def authorize(self) -> None:
        try:
            self.credentials.refresh(Request())
        except Exception as exc:
            raise wrap_error(exc) from exc

    def _open(self, spreadsheet_id: str) -> gspread.Spreadsheet:
        try:
            return self.gc.open_by_key(spreadsheet_id)
        except Exception as exc:
            raise wrap_error(exc) from exc

    def get_values(self, spreadsheet_id: str, a1_range: str) -> List[List[str]]:
        logger.debug("Reading %s from %s", a1_range, spreadsheet_id)
        spreadsheet = self._open(spreadsheet_id)
        try:
            response = spreadsheet.values_get(a1_range)
        except Exception as exc:
            raise wrap_error(exc) from exc
        return response.get("values", []) or []

    def get_metadata(self, spreadsheet_id: str) -> Dict[str, Any]:
        spreadsheet = self._open(spreadsheet_id)
        try:
            titles = [ws.title for ws in spreadsheet.worksheets()]
        except Exception as exc:
            raise wrap_error(exc) from exc
        return {"title": spreadsheet.title, "sheets": titles}

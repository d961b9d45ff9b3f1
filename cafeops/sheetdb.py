"""HTTP client for the spreadsheet REST proxy that holds every business record."""

from __future__ import annotations

import logging
from typing import Any, Mapping, Sequence
from urllib.parse import quote

import requests
from flask import Flask


logger = logging.getLogger(__name__)


class RecordStoreError(RuntimeError):
    """Raised for any failure talking to the record store."""

    def __init__(
        self,
        message: str,
        *,
        sheet: str | None = None,
        operation: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.sheet = sheet
        self.operation = operation
        self.status_code = status_code


def _segment(value: object) -> str:
    return quote(str(value), safe="")


class RecordStore:
    """Sheet-partitioned record access over GET/POST/PATCH/DELETE."""

    def __init__(self, app: Flask | None = None) -> None:
        self.base_url: str | None = None
        self.timeout: float | None = None
        self.session: requests.Session | None = None
        if app is not None:
            self.init_app(app)

    def init_app(self, app: Flask) -> None:
        base = (app.config.get("SHEETDB_BASE_URL") or "").rstrip("/")
        api_id = (app.config.get("SHEETDB_API_ID") or "").strip()
        self.base_url = f"{base}/{api_id}"
        self.timeout = app.config.get("SHEETDB_TIMEOUT")

        session = requests.Session()
        session.headers.update(
            {
                "Authorization": f"Bearer {app.config.get('SHEETDB_API_KEY') or ''}",
                "Content-Type": "application/json",
                "Accept": "application/json",
            }
        )
        self.session = session
        app.extensions["record_store"] = self

    def _request(
        self,
        method: str,
        sheet: str,
        path: str = "/",
        *,
        params: Mapping[str, Any] | None = None,
        payload: Any = None,
    ) -> Any:
        if self.session is None or self.base_url is None:
            raise RecordStoreError(
                "The record store has not been configured.",
                sheet=sheet,
                operation=method,
            )

        query: dict[str, Any] = {"sheet": sheet}
        if params:
            query.update(params)

        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(
                method,
                url,
                params=query,
                json={"data": payload} if payload is not None else None,
                timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.RequestException as exc:
            status_code = getattr(getattr(exc, "response", None), "status_code", None)
            logger.warning("%s %s (sheet=%s) failed: %s", method, path, sheet, exc)
            raise RecordStoreError(
                f"{method} on sheet {sheet} failed",
                sheet=sheet,
                operation=method,
                status_code=status_code,
            ) from exc

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise RecordStoreError(
                f"{method} on sheet {sheet} returned an unreadable body",
                sheet=sheet,
                operation=method,
                status_code=response.status_code,
            ) from exc

    def fetch_all(self, sheet: str) -> list[dict[str, Any]]:
        rows = self._request("GET", sheet)
        return list(rows or [])

    def search(
        self,
        sheet: str,
        criteria: Mapping[str, Any],
        *,
        case_sensitive: bool = False,
    ) -> list[dict[str, Any]]:
        params = dict(criteria)
        params["casesensitive"] = "true" if case_sensitive else "false"
        rows = self._request("GET", sheet, "/search", params=params)
        return list(rows or [])

    def create(self, sheet: str, rows: Mapping[str, Any] | Sequence[Mapping[str, Any]]) -> Any:
        if isinstance(rows, Mapping):
            payload: Any = dict(rows)
        else:
            payload = [dict(row) for row in rows]
        return self._request("POST", sheet, payload=payload)

    def update(
        self,
        sheet: str,
        column: str,
        value: object,
        fields: Mapping[str, Any],
    ) -> Any:
        path = f"/{_segment(column)}/{_segment(value)}"
        return self._request("PATCH", sheet, path, payload=dict(fields))

    def delete(self, sheet: str, column: str, value: object) -> Any:
        path = f"/{_segment(column)}/{_segment(value)}"
        return self._request("DELETE", sheet, path)

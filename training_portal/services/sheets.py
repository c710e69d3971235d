"""Google Sheets mirror of the nomination register (optional).

Talks to the Sheets v4 REST API directly over httpx. Authentication is the
service-account flow: a short-lived RS256 JWT assertion (PyJWT) is exchanged
for an OAuth access token, cached until shortly before it expires.

Column layout of the register (A:L):
    A id | B emp id | C name | D site | E designation | F email | G mobile |
    H experience | I justification | J nominator | K submitted at | L status
"""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Any, Optional
from urllib.parse import quote

import httpx
import jwt

from training_portal.core.config import Settings, settings

logger = logging.getLogger(__name__)

_TOKEN_URL = "https://oauth2.googleapis.com/token"
_SHEETS_URL = "https://sheets.googleapis.com/v4/spreadsheets"
_SCOPE = "https://www.googleapis.com/auth/spreadsheets"
_STATUS_COLUMN = "L"
_ID_COLUMN = "A"


class SheetsSyncError(Exception):
    """Any failure talking to the Sheets API."""


class SheetsClient:
    def __init__(self, config: Settings = settings, client: Optional[httpx.AsyncClient] = None):
        self._config = config
        self._http = client or httpx.AsyncClient(timeout=config.sheets_timeout)
        self._access_token: str | None = None
        self._token_expiry: float = 0.0

    @property
    def enabled(self) -> bool:
        return self._config.sheets_enabled

    @property
    def _sheet_name(self) -> str:
        return self._config.spreadsheet_range.split("!", 1)[0]

    def _values_url(self, cell_range: str) -> str:
        return f"{_SHEETS_URL}/{self._config.spreadsheet_id}/values/{quote(cell_range, safe='!:')}"

    def _assertion(self, now: int) -> str:
        private_key = (self._config.google_private_key or "").replace("\\n", "\n")
        claims = {
            "iss": self._config.google_sheets_client_email,
            "scope": _SCOPE,
            "aud": _TOKEN_URL,
            "iat": now,
            "exp": now + 3600,
        }
        return jwt.encode(claims, private_key, algorithm="RS256")

    async def _token(self) -> str:
        now = int(time.time())
        if self._access_token and now < self._token_expiry - 60:
            return self._access_token

        try:
            assertion = self._assertion(now)
        except (jwt.PyJWTError, ValueError) as exc:
            raise SheetsSyncError(f"Invalid service-account key: {exc}") from exc

        response = await self._http.post(
            _TOKEN_URL,
            data={"grant_type": "urn:ietf:params:oauth:grant-type:jwt-bearer", "assertion": assertion},
        )
        response.raise_for_status()
        payload = response.json()
        self._access_token = payload["access_token"]
        self._token_expiry = now + int(payload.get("expires_in", 3600))
        return self._access_token

    async def _request(self, method: str, url: str, **kwargs: Any) -> dict:
        try:
            token = await self._token()
            response = await self._http.request(
                method, url, headers={"Authorization": f"Bearer {token}"}, **kwargs
            )
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise SheetsSyncError(f"{method} {url} failed: {exc}") from exc
        return response.json() if response.content else {}

    async def append_row(self, values: list[Any]) -> dict:
        return await self._request(
            "POST",
            self._values_url(self._config.spreadsheet_range) + ":append",
            params={"valueInputOption": "USER_ENTERED"},
            json={"values": [values]},
        )

    async def find_row(self, record_id: str) -> int | None:
        """1-based row number whose id column equals *record_id*."""
        data = await self._request("GET", self._values_url(f"{self._sheet_name}!{_ID_COLUMN}:{_ID_COLUMN}"))
        for index, row in enumerate(data.get("values", []), start=1):
            if row and str(row[0]) == record_id:
                return index
        return None

    async def update_status(self, record_id: str, status: str) -> bool:
        """Write *status* into the status column of the row for *record_id*.

        Returns False when the row is not in the sheet.
        """
        row = await self.find_row(record_id)
        if row is None:
            logger.warning("[Sheets] Row for %s not found, status not updated", record_id)
            return False
        await self._request(
            "PUT",
            self._values_url(f"{self._sheet_name}!{_STATUS_COLUMN}{row}"),
            params={"valueInputOption": "USER_ENTERED"},
            json={"values": [[status]]},
        )
        logger.info("[Sheets] Status updated to %s for %s", status, record_id)
        return True

    async def aclose(self) -> None:
        await self._http.aclose()


def nomination_row(nomination, employee, nominator_email: str | None = None) -> list[Any]:
    """Register row for a freshly submitted nomination."""
    return [
        nomination.id,
        employee.id,
        employee.name,
        employee.location or "",
        employee.designation or "",
        employee.email or "",
        employee.mobile or "",
        employee.years_of_experience if employee.years_of_experience is not None else "",
        nomination.justification or "",
        nominator_email or "",
        datetime.now(timezone.utc).isoformat(),
        "Pending Manager",
    ]


_default_client: SheetsClient | None = None


def get_sheets_client() -> SheetsClient:
    global _default_client
    if _default_client is None:
        _default_client = SheetsClient()
    return _default_client


async def close_sheets_client() -> None:
    """Release the shared client's connection pool (application shutdown)."""
    global _default_client
    if _default_client is not None:
        await _default_client.aclose()
        _default_client = None

from __future__ import annotations

import time

import httpx

from training_portal.core.config import Settings
from training_portal.services import sheets
from training_portal.services.sheets import SheetsClient, close_sheets_client, get_sheets_client


def _client(handler) -> SheetsClient:
    config = Settings(spreadsheet_id="sheet-1", spreadsheet_range="Register!A:L")
    client = SheetsClient(config, client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))
    # Skip the service-account exchange
    client._access_token = "cached-token"
    client._token_expiry = time.time() + 3600
    return client


async def test_update_status_writes_status_cell_of_matching_row():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append((request.method, request.url.path, request.headers["Authorization"]))
        if request.method == "GET":
            return httpx.Response(200, json={"values": [["id"], ["n-1"], ["n-2"]]})
        return httpx.Response(200, json={"updatedCells": 1})

    client = _client(handler)
    assert await client.update_status("n-2", "Approved")
    await client.aclose()

    assert calls == [
        ("GET", "/v4/spreadsheets/sheet-1/values/Register!A:A", "Bearer cached-token"),
        ("PUT", "/v4/spreadsheets/sheet-1/values/Register!L3", "Bearer cached-token"),
    ]


async def test_update_status_for_missing_row():
    client = _client(lambda request: httpx.Response(200, json={"values": [["id"]]}))
    assert not await client.update_status("n-9", "Approved")
    await client.aclose()


async def test_close_releases_shared_client():
    shared = get_sheets_client()

    await close_sheets_client()

    assert shared._http.is_closed
    assert sheets._default_client is None
    await close_sheets_client()

"""
Thin async wrapper over ``httpx.AsyncClient`` for the portal API.

Every call returns the decoded JSON body.  Non-2xx answers raise
``ApiError``; transport problems surface as ``httpx.HTTPError``.  Callers
catch both at the boundary closest to the call (see ``API_ERRORS``).
"""
from __future__ import annotations

import json
from typing import Any, Optional

import httpx

from .config import ClientConfig


class ApiError(Exception):
    """Raised when the API answers with a non-2xx status or a non-JSON body."""

    def __init__(self, status_code: int, message: str = ""):
        super().__init__(f"{status_code}: {message}" if message else str(status_code))
        self.status_code = status_code
        self.message = message


# what client code catches around a network call
API_ERRORS = (httpx.HTTPError, ApiError)


def _error_message(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.reason_phrase
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict):
        return str(error.get("message") or "")
    return resp.reason_phrase


class ApiClient:
    def __init__(self, config: ClientConfig, *, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.config = config
        headers = {"Accept": "application/json"}
        if config.token:
            headers["Authorization"] = f"Token {config.token}"
        self._http = httpx.AsyncClient(
            base_url=config.base_url,
            headers=headers,
            timeout=config.timeout,
            transport=transport,
        )

    async def request(self, method: str, path: str, *, params: Optional[dict] = None,
                      json_body: Any = None) -> dict:
        resp = await self._http.request(method, path, params=params, json=json_body)
        if resp.status_code >= 400:
            raise ApiError(resp.status_code, _error_message(resp))
        raw = resp.content
        if not raw:
            return {}
        try:
            return json.loads(raw.decode())
        except ValueError as exc:
            raise ApiError(resp.status_code, "invalid JSON body") from exc

    async def get(self, path: str, params: Optional[dict] = None) -> dict:
        return await self.request("GET", path, params=params)

    async def post(self, path: str, body: Any = None) -> dict:
        return await self.request("POST", path, json_body=body)

    async def patch(self, path: str, body: Any = None) -> dict:
        return await self.request("PATCH", path, json_body=body)

    async def close(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

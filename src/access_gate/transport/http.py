"""
REST HTTP client for the backing data service.

Table reads go to /rest/v1/<table>, stored procedures to /rest/v1/rpc/<name>
and edge functions to /functions/v1/<name>.
"""

import json
import logging
from typing import Any, Optional

import httpx

from access_gate.errors import TransportError

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:54321"
DEFAULT_TIMEOUT = 30.0


class HttpClient:
    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        api_key: Optional[str] = None,
        token: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._token = token
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers={"User-Agent": "access-gate/0.1.0", "Accept": "application/json"},
            timeout=timeout,
            transport=transport,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    def set_token(self, token: Optional[str]) -> None:
        self._token = token

    def _headers(self) -> dict[str, str]:
        headers: dict[str, str] = {"Content-Type": "application/json"}
        if self._api_key:
            headers["apikey"] = self._api_key
        bearer = self._token or self._api_key
        if bearer:
            headers["Authorization"] = f"Bearer {bearer}"
        return headers

    @staticmethod
    def _error_message(resp: httpx.Response) -> str:
        """Pull {message} or {error} out of an error body, else the raw text."""
        try:
            body = resp.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            for key in ("message", "error", "msg"):
                if isinstance(body.get(key), str) and body[key]:
                    return body[key]
        return f"HTTP {resp.status_code}: {resp.text[:200]}"

    @staticmethod
    def _decode(resp: httpx.Response) -> Any:
        if not resp.content or not resp.content.strip():
            return None
        try:
            return resp.json()
        except json.JSONDecodeError as e:
            raise TransportError(f"Invalid JSON in response: {e}", resp.status_code)

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        try:
            resp = await self._client.request(method, path, headers=self._headers(), **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"{method} {path} failed: {e}")
            raise TransportError(str(e) or type(e).__name__)
        if resp.status_code >= 400:
            raise TransportError(self._error_message(resp), resp.status_code)
        return self._decode(resp)

    async def select(self, table: str, params: Optional[dict[str, str]] = None) -> list[dict[str, Any]]:
        """Read rows from a table. Always returns a list (possibly empty)."""
        rows = await self._request("GET", f"/rest/v1/{table}", params=params)
        if rows is None:
            return []
        if isinstance(rows, dict):
            return [rows]
        return list(rows)

    async def rpc(self, name: str, body: Optional[dict[str, Any]] = None) -> Any:
        return await self._request("POST", f"/rest/v1/rpc/{name}", json=body or {})

    async def invoke(self, function: str, body: Optional[dict[str, Any]] = None) -> Any:
        """Invoke an edge function; returns the decoded payload or None for an empty body."""
        return await self._request("POST", f"/functions/v1/{function}", json=body)

    async def close(self) -> None:
        await self._client.aclose()

"""
REST HTTP client for the relay gateway (`/start`, `/send`).
"""

from typing import Any, Optional

import httpx

from chatrelay.errors import RelayError

DEFAULT_BASE_URL = "http://localhost:3000"
DEFAULT_TIMEOUT_S = 30.0


class HttpClient:
    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT_S,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers={"User-Agent": "chatrelay/0.1.0", "Accept": "application/json"},
            timeout=timeout,
            transport=transport,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    @staticmethod
    def _json(resp: httpx.Response) -> Any:
        try:
            return resp.json()
        except ValueError:
            return None

    @classmethod
    def _raise_for_status(cls, resp: httpx.Response) -> None:
        if resp.status_code < 400:
            return
        body = cls._json(resp)
        if isinstance(body, dict) and body.get("error"):
            message = str(body["error"])
        else:
            message = f"HTTP {resp.status_code}: {resp.text[:200]}"
        raise RelayError(
            "http_error",
            message,
            {"status_code": resp.status_code, "body": body},
        )

    async def post(
        self,
        path: str,
        body: Optional[dict[str, Any]] = None,
        headers: Optional[dict[str, str]] = None,
    ) -> Any:
        try:
            resp = await self._client.post(path, json=body, headers=headers)
        except httpx.HTTPError as e:
            raise RelayError("http_error", f"Request to {path} failed: {e}")
        self._raise_for_status(resp)
        return self._json(resp)

    async def close(self) -> None:
        await self._client.aclose()

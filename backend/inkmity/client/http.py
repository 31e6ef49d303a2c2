import inspect
import logging
from typing import Any, Awaitable, Callable, Mapping, Optional, Union

import httpx

logger = logging.getLogger(__name__)

TokenProvider = Callable[[], Union[Optional[str], Awaitable[Optional[str]]]]

NETWORK_ERROR_MESSAGE = "Network error. Check your connection and try again."


class ApiError(Exception):
    """Failed API call: a non-2xx response, or status 0 when no response arrived."""

    def __init__(self, status: int, message: str, payload: Any = None) -> None:
        super().__init__(message)
        self.status = status
        self.message = message
        self.payload = payload


def clean_params(params: Optional[Mapping[str, Any]]) -> dict[str, Any]:
    """Drop ``None`` and empty-string values so they never reach the query string."""
    if not params:
        return {}
    return {k: v for k, v in params.items() if v is not None and v != ""}


def error_message(payload: Any, fallback: str) -> str:
    if isinstance(payload, dict):
        detail = payload.get("detail")
        if isinstance(detail, dict) and detail.get("message"):
            return str(detail["message"])
        if isinstance(detail, str) and detail:
            return detail
        for key in ("error", "message"):
            if payload.get(key):
                return str(payload[key])
    if isinstance(payload, str) and payload:
        return payload
    return fallback


class ApiClient:
    """Thin async wrapper around ``httpx.AsyncClient``.

    ``token_provider`` may be sync or async; it is called on every request so
    refreshed session tokens are picked up.
    """

    def __init__(
        self,
        base_url: str,
        token_provider: Optional[TokenProvider] = None,
        *,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._token_provider = token_provider
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _token(self) -> Optional[str]:
        if self._token_provider is None:
            return None
        token = self._token_provider()
        if inspect.isawaitable(token):
            token = await token
        return token or None

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Mapping[str, Any]] = None,
        json: Any = None,
    ) -> Any:
        headers = {"Accept": "application/json"}
        token = await self._token()
        if token:
            headers["Authorization"] = f"Bearer {token}"
        try:
            response = await self._client.request(
                method,
                path,
                params=clean_params(params),
                json=json,
                headers=headers,
            )
        except httpx.HTTPError as exc:
            # status 0 marks a request that never got a response
            logger.warning("%s %s failed: %s", method, path, exc)
            raise ApiError(0, NETWORK_ERROR_MESSAGE, None) from exc
        payload: Any = None
        if response.content:
            try:
                payload = response.json()
            except ValueError:
                payload = response.text
        if response.is_error:
            message = error_message(payload, response.reason_phrase or f"HTTP {response.status_code}")
            logger.debug("%s %s -> %s: %s", method, path, response.status_code, message)
            raise ApiError(response.status_code, message, payload)
        return payload

    async def get(self, path: str, **kwargs: Any) -> Any:
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str, **kwargs: Any) -> Any:
        return await self.request("POST", path, **kwargs)

    async def put(self, path: str, **kwargs: Any) -> Any:
        return await self.request("PUT", path, **kwargs)

    async def delete(self, path: str, **kwargs: Any) -> Any:
        return await self.request("DELETE", path, **kwargs)

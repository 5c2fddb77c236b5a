from __future__ import annotations

from typing import Any, ClassVar, Mapping, Optional

import httpx


class ProviderError(RuntimeError):
    """Raised when a call to an upstream service (identity, geocoding) fails."""

    def __init__(
        self,
        provider: str,
        code: str,
        message: str,
        retryable: bool = False,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.provider = provider
        self.code = code
        self.message = message
        self.retryable = retryable
        self.status_code = status_code


def status_error(provider: str, response: httpx.Response) -> ProviderError:
    """Map a non-2xx upstream response onto a ProviderError."""

    status = response.status_code
    formatted = f"{provider} responded {status}: {_error_detail(response)}"
    if status == 408:
        return ProviderError(provider, "PROVIDER_TIMEOUT", formatted, True, status)
    if status == 429:
        return ProviderError(provider, "PROVIDER_RATE_LIMIT", formatted, True, status)
    if status >= 500:
        return ProviderError(provider, "PROVIDER_UPSTREAM", formatted, True, status)
    return ProviderError(provider, "PROVIDER_REJECTED", formatted, status_code=status)


def _error_detail(response: httpx.Response) -> str:
    """Pull the most useful error text out of a JSON or plain-text body."""

    fallback = (response.text or "no response body").strip()
    try:
        payload: Any = response.json()
    except ValueError:
        return fallback
    if not isinstance(payload, dict):
        return fallback

    error = payload.get("error")
    if isinstance(error, dict):
        error = error.get("message") or error.get("code")
    candidates = (
        error,
        payload.get("error_description"),
        payload.get("error_message"),
        payload.get("message"),
    )
    for candidate in candidates:
        if isinstance(candidate, str) and candidate.strip():
            return candidate.strip()
    return fallback


class HTTPProviderAdapter:
    """Base for adapters that talk JSON over HTTP to an upstream service."""

    provider_name: ClassVar[str] = "provider"

    def __init__(
        self, timeout_sec: float = 10, http_client: Optional[httpx.AsyncClient] = None
    ) -> None:
        self._timeout = timeout_sec
        self._client = http_client

    async def _get_json(
        self,
        url: str,
        headers: Optional[dict[str, str]] = None,
        params: Optional[Mapping[str, str]] = None,
    ) -> dict[str, Any]:
        response = await self._send("GET", url, headers=headers, params=params)
        try:
            payload = response.json()
        except ValueError as exc:
            raise self._error("PROVIDER_PARSE_ERROR", "response was not JSON") from exc
        if not isinstance(payload, dict):
            raise self._error("PROVIDER_PARSE_ERROR", "response was not a JSON object")
        return payload

    async def _send(
        self,
        method: str,
        url: str,
        headers: Optional[dict[str, str]] = None,
        params: Optional[Mapping[str, str]] = None,
    ) -> httpx.Response:
        try:
            if self._client:
                response = await self._client.request(
                    method, url, headers=headers, params=params, timeout=self._timeout
                )
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    response = await client.request(method, url, headers=headers, params=params)
        except httpx.TimeoutException as exc:
            raise self._error("PROVIDER_TIMEOUT", "request timed out", retryable=True) from exc
        except httpx.RequestError as exc:
            raise self._error(
                "PROVIDER_CONNECTION_ERROR", "connection failed", retryable=True
            ) from exc
        if response.status_code >= 400:
            raise status_error(self.provider_name, response)
        return response

    def _error(self, code: str, detail: str, retryable: bool = False) -> ProviderError:
        return ProviderError(
            self.provider_name, code, f"{self.provider_name} {detail}", retryable=retryable
        )

    def _endpoint(self, base_url: str, path: str) -> str:
        if not base_url:
            raise self._error("PROVIDER_BASE_URL_MISSING", "base URL is not configured")
        return base_url.rstrip("/") + path

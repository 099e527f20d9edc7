"""HTTP client for the storefront core API."""

from __future__ import annotations

import json
import logging
import os
from typing import Any, Mapping

import httpx

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "http://localhost:3002/api"
DEFAULT_TIMEOUT = 60.0


class ApiError(Exception):
    """Non-2xx response or transport failure from the core API."""

    def __init__(self, status: int | None, message: str, data: Any = None) -> None:
        super().__init__(message)
        self.status = status
        self.message = message
        self.data = data

    def __str__(self) -> str:
        if self.status is None:
            return self.message
        return f"{self.status}: {self.message}"


class RateLimitError(ApiError):
    pass


def _core_url(base_url: str) -> str:
    base_url = base_url.rstrip("/")
    return base_url if base_url.endswith("/api") else f"{base_url}/api"


def _error_message(data: Any) -> str:
    message = data.get("message") if isinstance(data, dict) else None
    if not message:
        return "An error occurred"
    if not isinstance(message, str):
        return json.dumps(message)
    return message


def _unwrap(payload: Any) -> Any:
    if isinstance(payload, dict) and "success" in payload and "data" in payload:
        return payload["data"]
    return payload


class CatalogApiClient:
    def __init__(
        self,
        base_url: str = DEFAULT_API_URL,
        *,
        token: str | None = None,
        tenant_domain: str = "localhost",
        timeout: float = DEFAULT_TIMEOUT,
        session: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = _core_url(base_url)
        self.token = token
        self.tenant_domain = tenant_domain
        self._session = session or httpx.AsyncClient(timeout=timeout)

    async def close(self) -> None:
        await self._session.aclose()

    def _headers(self) -> dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "X-Tenant-Domain": self.tenant_domain,
        }
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        payload: Any = None,
    ) -> Any:
        url = path if path.startswith("http") else f"{self.base_url}{path}"
        try:
            response = await self._session.request(
                method, url, params=params, json=payload, headers=self._headers()
            )
        except httpx.TransportError as exc:
            logger.error("Request to %s failed: %s", url, exc)
            raise ApiError(None, "Network error") from exc

        if response.is_error:
            try:
                data = response.json()
            except ValueError:
                data = {}
            error_cls = RateLimitError if response.status_code == 429 else ApiError
            raise error_cls(response.status_code, _error_message(data), data)

        if response.status_code == 204 or not response.content:
            return None
        return _unwrap(response.json())

    async def get(self, path: str, params: Mapping[str, Any] | None = None) -> Any:
        return await self.request("GET", path, params=params)

    async def post(self, path: str, payload: Any, params: Mapping[str, Any] | None = None) -> Any:
        return await self.request("POST", path, params=params, payload=payload)

    async def create_brand(self, data: Mapping[str, Any]) -> Any:
        return await self.post("/brands", dict(data))

    async def create_category(self, data: Mapping[str, Any], *, upsert: bool = False) -> Any:
        return await self.post("/categories", dict(data), params={"upsert": "true"} if upsert else None)

    async def create_product(self, data: Mapping[str, Any], *, upsert: bool = False) -> Any:
        return await self.post("/products", dict(data), params={"upsert": "true"} if upsert else None)


def create_client_from_env() -> CatalogApiClient:
    """Create a client using the CATALOG_API_* environment variables."""
    return CatalogApiClient(
        os.environ.get("CATALOG_API_URL", DEFAULT_API_URL),
        token=os.environ.get("CATALOG_API_TOKEN") or None,
        tenant_domain=os.environ.get("CATALOG_TENANT_DOMAIN", "localhost"),
        timeout=float(os.environ.get("CATALOG_API_TIMEOUT", DEFAULT_TIMEOUT)),
    )

"""Admin API transport built on httpx.

The client turns non-2xx responses into ``StoreApiError`` with the status
code attached, and spaces requests through a ``RateLimiter``. It does not
retry; call sites wrap it with the resilient executor so a retry always
covers exactly one logical operation.
"""

from __future__ import annotations

from types import TracebackType
from typing import Any

import httpx

from storesync.core.config import StoreCredentials, StoreSettings
from storesync.core.constants import ACCESS_TOKEN_HEADER
from storesync.core.errors import StoreApiError
from storesync.core.logging import get_logger
from storesync.execution.rate_limiter import RateLimiter

_logger = get_logger("api.client")

# Appended to 403 messages so the user knows which scopes to grant
SCOPE_HINTS: dict[str, str] = {
    "pages": "read_online_store_pages and write_online_store_pages",
    "files": "read_files and write_files",
    "menus": "read_online_store_navigation and write_online_store_navigation",
    "products": "read_products and write_products",
    "collections": "read_products and write_products",
    "webhooks": "read_webhooks and write_webhooks (or the scope of each webhook topic)",
    "redirects": "read_online_store_navigation and write_online_store_navigation",
    "metafields": "read_metafields and write_metafields",
    "metaobjects": "read_metaobjects and write_metaobjects",
    "metaobject_definitions": "read_metaobject_definitions and write_metaobject_definitions",
    "blogs": "read_content and write_content",
}


def error_for_response(response: httpx.Response, resource: str | None = None) -> StoreApiError:
    """Build the StoreApiError for a non-2xx response."""
    status = response.status_code
    body = response.text
    if status == 401:
        message = "Unauthorized - invalid access token or store domain. Verify your credentials."
    elif status == 403:
        message = "Forbidden - missing required permissions"
        if resource in SCOPE_HINTS:
            message += f". Ensure your app has {SCOPE_HINTS[resource]} scopes"
    else:
        message = f"API request failed ({status})"
        if body:
            message += f": {body}"
    return StoreApiError(message, status_code=status, resource=resource, body=body)


class StoreClient:
    """Async REST client for one store.

    Example usage:
        async with StoreClient(credentials) as client:
            shop = await client.get_json("shop.json")
    """

    def __init__(
        self,
        credentials: StoreCredentials,
        settings: StoreSettings | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        rate_limiter: RateLimiter | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            credentials: Store domain and access token.
            settings: Connection settings (defaults when omitted).
            transport: Optional httpx transport, used by tests.
            rate_limiter: Limiter shared by every request of this client.
        """
        self.credentials = credentials
        self.settings = settings or StoreSettings()
        self.base_url = self.settings.admin_base_url(credentials.site)
        self.rate_limiter = rate_limiter or RateLimiter(self.settings.rate_limit_interval_seconds)
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def site(self) -> str:
        return self.credentials.site

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the pooled HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.settings.timeout_seconds),
                transport=self._transport,
            )
        return self._client

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> StoreClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    def url_for(self, path: str) -> str:
        """Resolve an endpoint path (or an absolute URL) against the admin base URL."""
        if path.startswith(("http://", "https://")):
            return path
        return f"{self.base_url}/{path.lstrip('/')}"

    def _admin_headers(self) -> dict[str, str]:
        return {
            ACCESS_TOKEN_HEADER: self.credentials.access_token.get_secret_value(),
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: dict[str, Any] | None = None,
        resource: str | None = None,
    ) -> httpx.Response:
        """Send one admin API request.

        Args:
            method: HTTP method.
            path: Endpoint relative to the admin base URL, or an absolute URL
                (e.g. a pagination link).
            json: JSON body.
            params: Query parameters.
            resource: Resource type, used for error hints.

        Returns:
            The successful response.

        Raises:
            StoreApiError: For non-2xx responses.
            httpx.TransportError: For network failures.
        """
        await self.rate_limiter.wait_turn()
        client = await self._get_client()
        url = self.url_for(path)
        _logger.debug("api.request", method=method, url=url, resource=resource)

        response = await client.request(
            method,
            url,
            json=json,
            params=params,
            headers=self._admin_headers(),
        )
        if not response.is_success:
            _logger.debug(
                "api.request_failed",
                method=method,
                url=url,
                status_code=response.status_code,
            )
            raise error_for_response(response, resource)
        return response

    async def get_json(
        self,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        resource: str | None = None,
    ) -> Any:
        response = await self.request("GET", path, params=params, resource=resource)
        return response.json()

    async def post_json(self, path: str, payload: Any, *, resource: str | None = None) -> Any:
        response = await self.request("POST", path, json=payload, resource=resource)
        return response.json() if response.content else None

    async def put_json(self, path: str, payload: Any, *, resource: str | None = None) -> Any:
        response = await self.request("PUT", path, json=payload, resource=resource)
        return response.json() if response.content else None

    async def delete(self, path: str, *, resource: str | None = None) -> None:
        await self.request("DELETE", path, resource=resource)

    async def download(self, url: str) -> bytes:
        """Download a public asset (CDN URL) without sending credentials."""
        await self.rate_limiter.wait_turn()
        client = await self._get_client()
        response = await client.get(url, follow_redirects=True)
        if not response.is_success:
            raise StoreApiError(
                f"Failed to download file ({response.status_code}): {url}",
                status_code=response.status_code,
                resource="files",
            )
        return response.content

    async def upload_form(
        self,
        url: str,
        fields: dict[str, str],
        filename: str,
        content: bytes,
        mime_type: str,
    ) -> None:
        """POST a multipart form to a staged upload target."""
        client = await self._get_client()
        response = await client.post(
            url,
            data=fields,
            files={"file": (filename, content, mime_type)},
        )
        if not response.is_success:
            raise StoreApiError(
                f"Failed to upload to staging ({response.status_code}): {response.text}",
                status_code=response.status_code,
                resource="files",
            )


__all__ = ["SCOPE_HINTS", "StoreClient", "error_for_response"]

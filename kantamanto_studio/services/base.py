"""Shared HTTP plumbing for the studio's service clients."""

import logging

import httpx

logger = logging.getLogger(__name__)


class ServiceClient:
    """Base for clients that talk to one HTTP service."""

    def __init__(
        self,
        base_url: str,
        timeout: float,
        client: httpx.AsyncClient | None = None,
        headers: dict[str, str] | None = None,
        cookies: dict[str, str] | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.headers = headers or {}
        self.cookies = cookies or {}
        self._client = client
        if client is not None:
            client.headers.update(self.headers)
            client.cookies.update(self.cookies)

    @property
    def client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                headers=self.headers,
                cookies=self.cookies,
            )
        return self._client

    async def check_connection(self) -> bool:
        """Verify the service is running and accessible."""
        try:
            response = await self.client.get(f"{self.base_url}/")
            return response.status_code < 500
        except httpx.HTTPError as e:
            logger.warning("Service at %s unreachable: %s", self.base_url, e)
            return False

    async def close(self):
        """Close the HTTP client."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None


def is_json_response(response: httpx.Response) -> bool:
    content_type = response.headers.get("content-type", "")
    return "application/json" in content_type

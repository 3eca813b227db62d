"""Client for the marketplace product API (draft listings)."""

import logging

import httpx
from pydantic import ValidationError

from ..config import BackendConfig
from ..models.product import DraftFields, DraftProduct
from .base import ServiceClient

logger = logging.getLogger(__name__)


class ProductStorageError(RuntimeError):
    """Raised when the backend refuses or fails a product write."""


class ProductStorageClient(ServiceClient):
    """Creates draft products and attaches fashion models to them."""

    def __init__(self, config: BackendConfig, client: httpx.AsyncClient | None = None):
        headers = {"Authorization": f"Bearer {config.api_token}"} if config.api_token else None
        super().__init__(
            config.base_url,
            config.timeout,
            client=client,
            headers=headers,
            cookies=config.cookies,
        )
        self.config = config

    async def create_draft(self, fields: DraftFields) -> DraftProduct:
        """Create a draft listing and return the stored record."""
        response = await self._request(
            "POST",
            "/api/products",
            json=fields.model_dump(by_alias=True, exclude_none=True),
        )
        draft = self._parse(response, "Failed to create product")
        logger.info("Created draft product %s", draft.id)
        return draft

    async def patch_model(
        self,
        product_id: str,
        model_id: str,
        preview_url: str | None = None,
    ) -> DraftProduct:
        """Attach a fashion model (and optionally an AI preview) to a product.

        The backend may rehost the preview, so callers should treat the
        returned ``ai_preview_url`` as authoritative.
        """
        payload: dict[str, str] = {"modelId": model_id}
        if preview_url:
            payload["aiPreviewUrl"] = preview_url

        response = await self._request("PATCH", f"/api/products/{product_id}/model", json=payload)
        product = self._parse(response, "Failed to update product model")
        logger.info("Product %s now uses fashion model %s", product_id, model_id)
        return product

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            return await self.client.request(method, f"{self.base_url}{path}", **kwargs)
        except httpx.HTTPError as e:
            raise ProductStorageError(f"Product service unreachable: {e}") from e

    def _parse(self, response: httpx.Response, failure: str) -> DraftProduct:
        if response.is_error:
            detail = _error_message(response)
            raise ProductStorageError(f"{failure}: {detail}" if detail else failure)
        try:
            return DraftProduct.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise ProductStorageError(f"{failure}: unexpected response ({e})") from e


def _error_message(response: httpx.Response) -> str | None:
    try:
        body = response.json()
    except ValueError:
        return response.text[:200] or None
    if isinstance(body, dict):
        return body.get("message")
    return None

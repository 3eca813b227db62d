"""Read-only client for the curated fashion-model catalog."""

import logging
from typing import Any, Iterable

import httpx
from pydantic import ValidationError

from ..config import BackendConfig
from ..models.fashion_model import ModelRef
from .base import ServiceClient

logger = logging.getLogger(__name__)


class CatalogError(RuntimeError):
    """Raised when the catalog cannot be read."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class ModelCatalogClient(ServiceClient):
    """Looks up fashion models by id, filters and recommendations."""

    def __init__(self, config: BackendConfig, client: httpx.AsyncClient | None = None):
        super().__init__(config.base_url, config.timeout, client=client)
        self.config = config

    async def list_models(
        self,
        gender: str | None = None,
        category: str | None = None,
        search: str | None = None,
        featured: bool = False,
    ) -> list[ModelRef]:
        """List active catalog models matching the given filters."""
        params: dict[str, str] = {"active": "true"}
        if gender:
            params["gender"] = gender.lower()
        if category:
            params["category"] = category.lower()
        if featured:
            params["featured"] = "true"

        data = await self._get("/api/fashion-models", params=params)
        models = self._parse_list(data)
        # Search text is matched locally; the catalog endpoint has no free-text filter
        return filter_models(models, search=search)

    async def get_model(self, model_id: str) -> ModelRef | None:
        """Fetch one model, or None if the catalog does not know it."""
        try:
            data = await self._get(f"/api/fashion-models/{model_id}")
        except CatalogError as e:
            if e.status_code == 404:
                return None
            raise
        try:
            return ModelRef.model_validate(data)
        except ValidationError as e:
            raise CatalogError(f"Malformed fashion model {model_id}: {e}") from e

    async def recommended(self, garment_type: str, gender: str, limit: int = 3) -> list[ModelRef]:
        """Models the catalog recommends for a garment type and gender."""
        if not 1 <= limit <= 10:
            raise ValueError("limit must be a number between 1 and 10")
        data = await self._get(
            "/api/fashion-models/recommended",
            params={"garmentType": garment_type, "gender": gender, "limit": str(limit)},
        )
        return self._parse_list(data)

    async def _get(self, path: str, params: dict[str, str] | None = None) -> Any:
        try:
            response = await self.client.get(f"{self.base_url}{path}", params=params)
        except httpx.HTTPError as e:
            raise CatalogError(f"Fashion model catalog unreachable: {e}") from e

        try:
            body = response.json()
        except ValueError as e:
            raise CatalogError("Fashion model catalog returned invalid JSON") from e

        if response.is_error or not isinstance(body, dict) or not body.get("success", False):
            message = body.get("message") if isinstance(body, dict) else None
            raise CatalogError(
                message or f"Fashion model catalog error ({response.status_code})",
                status_code=response.status_code,
            )

        return body.get("data")

    def _parse_list(self, data: Any) -> list[ModelRef]:
        if not isinstance(data, list):
            raise CatalogError("Fashion model catalog returned no list")
        models = []
        for item in data:
            try:
                models.append(ModelRef.model_validate(item))
            except ValidationError as e:
                logger.warning("Skipping malformed catalog entry: %s", e)
        return models


def filter_models(
    models: Iterable[ModelRef],
    gender: str | None = None,
    category: str | None = None,
    search: str | None = None,
) -> list[ModelRef]:
    """Filter catalog models locally.

    Unisex models match any gender. Search text is matched against name,
    body type, ethnicity, category and tags. Inactive models are dropped.
    Featured models sort first.
    """
    gender = gender.lower() if gender else None
    category = category.lower() if category else None
    needle = search.strip().lower() if search else ""

    matches = []
    for model in models:
        if not model.is_active:
            continue
        if gender and model.gender.lower() not in (gender, "unisex"):
            continue
        if category and model.category.lower() != category:
            continue
        if needle:
            haystack = " ".join(
                [model.name, model.body_type, model.ethnicity, model.category, *model.tags]
            ).lower()
            if needle not in haystack:
                continue
        matches.append(model)

    return sorted(matches, key=lambda m: not m.is_featured)

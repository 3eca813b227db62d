"""HTTP clients for the services the studio depends on."""

from .background_removal import BackgroundRemovalClient
from .model_overlay import ModelOverlayClient
from .product_storage import ProductStorageClient, ProductStorageError
from .model_catalog import CatalogError, ModelCatalogClient, filter_models

__all__ = [
    "BackgroundRemovalClient",
    "ModelOverlayClient",
    "ProductStorageClient",
    "ProductStorageError",
    "CatalogError",
    "ModelCatalogClient",
    "filter_models",
]

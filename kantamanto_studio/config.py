"""Configuration management for the AI Studio pipeline."""

import logging

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BackgroundRemovalConfig(BaseModel):
    """Cutout service connection settings."""
    base_url: str = "http://127.0.0.1:5000"
    endpoint: str = "/api/ai/remove-background"
    timeout: float = 60.0

    @property
    def url(self) -> str:
        return f"{self.base_url.rstrip('/')}{self.endpoint}"


class ModelOverlayConfig(BaseModel):
    """Virtual try-on service connection settings."""
    base_url: str = "http://127.0.0.1:5000"
    endpoint: str = "/api/ai/model-overlay"
    timeout: float = 90.0  # Service polls the try-on provider for up to 60s

    @property
    def url(self) -> str:
        return f"{self.base_url.rstrip('/')}{self.endpoint}"


class BackendConfig(BaseModel):
    """Marketplace API used for drafts and the fashion-model catalog."""
    base_url: str = "http://127.0.0.1:5000"
    timeout: float = 30.0
    seller_id: str = "seller-id-placeholder"
    api_token: str | None = None
    # The marketplace authenticates product writes with its login session
    session_cookie: str | None = None
    session_cookie_name: str = "connect.sid"

    @property
    def cookies(self) -> dict[str, str]:
        if not self.session_cookie:
            return {}
        return {self.session_cookie_name: self.session_cookie}


class LoggingConfig(BaseModel):
    """Logging settings."""
    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class StudioConfig(BaseSettings):
    """Main studio configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="KANTAMANTO_",
        env_nested_delimiter="__",
        extra="ignore",
        protected_namespaces=(),
    )

    # Sub-configs
    background_removal: BackgroundRemovalConfig = Field(default_factory=BackgroundRemovalConfig)
    model_overlay: ModelOverlayConfig = Field(default_factory=ModelOverlayConfig)
    backend: BackendConfig = Field(default_factory=BackendConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    # Uploads
    max_upload_mb: int = 5

    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_mb * 1024 * 1024


def load_config() -> StudioConfig:
    """Load configuration from environment and defaults."""
    return StudioConfig()


def setup_logging(config: StudioConfig) -> None:
    """Apply the configured log level and format to the root logger."""
    logging.basicConfig(
        level=getattr(logging, config.logging.level.upper(), logging.INFO),
        format=config.logging.format,
    )

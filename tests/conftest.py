# Test fixtures and configuration
import io
import sys
from pathlib import Path

import httpx
import pytest
from PIL import Image

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from kantamanto_studio.config import StudioConfig
from kantamanto_studio.models import ModelRef


@pytest.fixture
def config():
    """Default studio configuration."""
    return StudioConfig()


@pytest.fixture
def png_bytes():
    """Small valid PNG image bytes."""
    buffer = io.BytesIO()
    Image.new("RGB", (8, 8), "red").save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def fashion_model():
    """A catalog model as the studio would receive it."""
    return ModelRef(
        id="model-ama",
        name="Ama - Casual Lifestyle",
        gender="women",
        body_type="athletic",
        ethnicity="african",
        category="casual",
        image_url="https://cdn.example.com/models/ama.png",
        tags=["casual", "summer"],
        is_featured=True,
    )


@pytest.fixture
def other_fashion_model():
    return ModelRef(
        id="model-kofi",
        name="Kofi - Formal",
        gender="men",
        category="formal",
        image_url="https://cdn.example.com/models/kofi.png",
    )


@pytest.fixture
def mock_http():
    """Build an AsyncClient whose requests are answered by ``handler``."""
    def build(handler):
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return build

"""FastAPI server for the AI Studio.

Receives processing requests from the marketplace front end with:
- image: Base64-encoded garment photo, or image_url: URL of one
- category: Product category text
- gender: Optional gender preference
- model_id: Optional catalog fashion model to composite onto
"""

import logging

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ConfigDict, model_validator

from kantamanto_studio import __version__
from kantamanto_studio.config import load_config, setup_logging
from kantamanto_studio.models import ImageSource, ProcessingOutcome
from kantamanto_studio.pipeline import ProcessingPipeline
from kantamanto_studio.services import CatalogError, ModelCatalogClient, filter_models
from kantamanto_studio.utils.images import InvalidImageError, image_source_from_base64

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Kantamanto AI Studio API",
    description="Background removal and virtual try-on for marketplace listings",
    version=__version__,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class ProcessRequest(BaseModel):
    """Request body for image processing."""
    model_config = ConfigDict(protected_namespaces=())

    image: str | None = None  # Base64 data URL
    image_url: str | None = None
    category: str
    gender: str = "unisex"
    model_id: str | None = None

    @model_validator(mode="after")
    def check_inputs(self) -> "ProcessRequest":
        if not (self.image or self.image_url):
            raise ValueError("Provide either image or image_url")
        if not self.category.strip():
            raise ValueError("category must not be empty")
        return self


class ProcessResponse(BaseModel):
    """Processing outcome ready for display."""
    success: bool
    outcome: ProcessingOutcome
    final_image_url: str | None = None
    source_image_url: str | None = None
    message: str


# Initialized on first request
_pipeline: ProcessingPipeline | None = None
_catalog: ModelCatalogClient | None = None


def get_pipeline() -> ProcessingPipeline:
    """Get or create the pipeline instance."""
    global _pipeline
    if _pipeline is None:
        config = load_config()  # Loads from .env automatically via pydantic-settings
        setup_logging(config)
        _pipeline = ProcessingPipeline(config)
    return _pipeline


def get_catalog() -> ModelCatalogClient:
    """Get or create the fashion-model catalog client."""
    global _catalog
    if _catalog is None:
        _catalog = ModelCatalogClient(load_config().backend)
    return _catalog


@app.get("/")
async def root():
    """Health check endpoint."""
    return {"status": "ok", "service": "Kantamanto AI Studio API", "version": __version__}


@app.get("/health")
async def health():
    """Detailed health check."""
    services = await get_pipeline().check_services()
    return {
        "status": "ok" if all(services.values()) else "degraded",
        "background_removal": "connected" if services["background_removal"] else "disconnected",
        "model_overlay": "connected" if services["model_overlay"] else "disconnected",
    }


@app.post("/api/studio/process", response_model=ProcessResponse)
async def process_image(request: ProcessRequest):
    """Remove the background and composite the garment onto a model."""
    pipeline = get_pipeline()

    if request.image:
        if len(request.image) * 3 // 4 > pipeline.config.max_upload_bytes:
            raise HTTPException(
                status_code=413,
                detail=f"File size too large. Maximum size is {pipeline.config.max_upload_mb}MB.",
            )
        try:
            source = image_source_from_base64(request.image)
        except InvalidImageError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e
    else:
        source = ImageSource.from_url(request.image_url or "")

    model_ref = None
    if request.model_id:
        try:
            model_ref = await get_catalog().get_model(request.model_id)
        except CatalogError as e:
            logger.warning("Fashion model lookup failed: %s", e)
            return _failure(source, "Fashion model catalog unavailable. Please try again.")
        if model_ref is None or not model_ref.is_active:
            return _failure(source, "Invalid or inactive fashion model")

    result = await pipeline.process(source, request.category, request.gender, model_ref)

    return ProcessResponse(
        success=result.succeeded,
        outcome=result.outcome,
        final_image_url=result.final_image_ref,
        source_image_url=source.url if source.kind == "url" else None,
        message=result.stage_narrative,
    )


@app.get("/api/studio/models")
async def list_models(
    gender: str | None = None,
    category: str | None = None,
    search: str | None = None,
):
    """Fashion models available for overlay, filtered for the picker."""
    try:
        models = await get_catalog().list_models(category=category)
    except CatalogError as e:
        logger.warning("Fashion model listing failed: %s", e)
        raise HTTPException(status_code=502, detail=str(e)) from e

    matches = filter_models(models, gender=gender, search=search)
    return {"success": True, "data": [m.model_dump(by_alias=True) for m in matches]}


def _failure(source: ImageSource, message: str) -> ProcessResponse:
    return ProcessResponse(
        success=False,
        outcome=ProcessingOutcome.FAILED,
        source_image_url=source.url if source.kind == "url" else None,
        message=message,
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)

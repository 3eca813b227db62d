"""Tests for the studio session state machine."""

from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from kantamanto_studio.config import BackgroundRemovalConfig, ModelOverlayConfig
from kantamanto_studio.models import (
    DraftProduct,
    ImageSource,
    ProcessingOutcome,
    ProcessingResult,
    StudioCategory,
)
from kantamanto_studio.pipeline import ProcessingPipeline
from kantamanto_studio.services import (
    BackgroundRemovalClient,
    ModelOverlayClient,
    ProductStorageError,
)
from kantamanto_studio.studio import StudioSessionController, StudioState

SOURCE_URL = "https://cdn.example.com/uploads/top.jpg"
CUTOUT_URL = "https://res.cloudinary.com/demo/bg-removed/bg-1.png"
TRYON_URL = "https://cdn.fashn.ai/output/tryon-1.png"
PREVIEW_URL = "https://res.cloudinary.com/demo/ai-preview-prod-1.png"

SUCCESS = ProcessingResult(
    outcome=ProcessingOutcome.SUCCESS,
    final_image_ref=TRYON_URL,
    source_image_ref=SOURCE_URL,
    stage_narrative="AI processing completed successfully",
)
FAILED = ProcessingResult(
    outcome=ProcessingOutcome.FAILED,
    source_image_ref=SOURCE_URL,
    stage_narrative="Background removal failed",
)


@pytest.fixture
def pipeline():
    pipeline = MagicMock()
    pipeline.process = AsyncMock(return_value=SUCCESS)
    return pipeline


@pytest.fixture
def products():
    products = MagicMock()
    products.create_draft = AsyncMock(return_value=DraftProduct(id="prod-1", status="draft"))
    products.patch_model = AsyncMock(
        side_effect=lambda product_id, model_id, preview_url=None: DraftProduct(
            id=product_id, fashion_model_id=model_id, ai_preview_url=PREVIEW_URL,
        )
    )
    return products


@pytest.fixture
def controller(pipeline, products):
    return StudioSessionController(pipeline, products, seller_id="seller-1")


async def resolve(controller, png_bytes, category=StudioCategory.TOP):
    controller.select_image(ImageSource.from_bytes(png_bytes))
    controller.select_category(category)
    return await controller.generate()


class TestSelection:

    def test_starts_idle(self, controller):
        assert controller.state == StudioState.IDLE

    def test_image_then_category(self, controller, png_bytes):
        assert controller.select_image(ImageSource.from_bytes(png_bytes)).state == StudioState.IMAGE_SELECTED
        assert controller.select_category("Top").state == StudioState.CATEGORY_SELECTED

    def test_undecodable_image_is_rejected(self, controller):
        result = controller.select_image(ImageSource.from_bytes(b"definitely not an image"))

        assert result.accepted is False
        assert controller.state == StudioState.IDLE
        assert controller.session.image is None
        assert result.message

    def test_unknown_category_is_rejected(self, controller, png_bytes):
        controller.select_image(ImageSource.from_bytes(png_bytes))

        result = controller.select_category("Shoes")

        assert result.accepted is False
        assert controller.state == StudioState.IMAGE_SELECTED

    def test_category_is_case_insensitive(self, controller, png_bytes):
        controller.select_image(ImageSource.from_bytes(png_bytes))
        controller.select_category("full-body")
        assert controller.session.category == StudioCategory.FULL_BODY

    @pytest.mark.asyncio
    async def test_model_or_auto(self, controller, png_bytes, fashion_model):
        controller.select_image(ImageSource.from_bytes(png_bytes))
        controller.select_category("Top")

        assert (await controller.select_model(fashion_model)).state == StudioState.MODEL_SELECTED
        assert (await controller.select_model(None)).state == StudioState.AUTO_MODEL

    def test_removing_image_goes_back_to_idle(self, controller, png_bytes):
        controller.select_image(ImageSource.from_bytes(png_bytes))
        controller.select_category("Top")

        assert controller.remove_image().state == StudioState.IDLE

    def test_invalid_gender_rejected(self, controller):
        assert controller.select_gender("robots").accepted is False
        assert controller.select_gender("Women").accepted is True
        assert controller.session.gender == "women"


class TestGenerate:

    @pytest.mark.asyncio
    async def test_generate_without_image_is_rejected(self, controller, pipeline):
        controller.select_category("Top")

        result = await controller.generate()

        assert result.accepted is False
        assert "image" in result.message
        assert controller.state in (StudioState.IDLE, StudioState.CATEGORY_SELECTED)
        pipeline.process.assert_not_called()

    @pytest.mark.asyncio
    async def test_generate_without_category_is_rejected(self, controller, pipeline, png_bytes):
        controller.select_image(ImageSource.from_bytes(png_bytes))

        result = await controller.generate()

        assert result.accepted is False
        assert controller.state == StudioState.IMAGE_SELECTED
        pipeline.process.assert_not_called()

    @pytest.mark.asyncio
    async def test_generate_resolves(self, controller, pipeline, png_bytes, fashion_model):
        controller.select_image(ImageSource.from_bytes(png_bytes))
        controller.select_category("Bottom")
        controller.select_gender("men")
        await controller.select_model(fashion_model)

        result = await controller.generate()

        assert result.accepted is True
        assert controller.state == StudioState.RESOLVED
        assert controller.session.outcome == ProcessingOutcome.SUCCESS
        assert controller.session.display_image_ref == TRYON_URL
        image, category, gender, model = pipeline.process.await_args.args
        assert category == "Pants"
        assert gender == "men"
        assert model == fashion_model

    @pytest.mark.asyncio
    async def test_duplicate_generate_is_refused(self, controller, pipeline, png_bytes):
        nested = []

        async def slow_process(*args):
            assert controller.session.is_generating
            nested.append(await controller.generate())
            return SUCCESS

        pipeline.process = AsyncMock(side_effect=slow_process)

        await resolve(controller, png_bytes)

        assert nested[0].accepted is False
        assert pipeline.process.await_count == 1

    @pytest.mark.asyncio
    async def test_stale_result_after_run_again_is_discarded(self, controller, pipeline, png_bytes):
        async def process_then_reset(*args):
            controller.run_again()
            return SUCCESS

        pipeline.process = AsyncMock(side_effect=process_then_reset)

        result = await resolve(controller, png_bytes)

        assert result.accepted is False
        assert controller.state == StudioState.IDLE
        assert controller.session.result is None
        assert controller.session.display_image_ref is None

    @pytest.mark.asyncio
    async def test_failed_result_can_be_retried(self, controller, pipeline, png_bytes):
        pipeline.process = AsyncMock(side_effect=[FAILED, SUCCESS])

        await resolve(controller, png_bytes)
        assert controller.session.outcome == ProcessingOutcome.FAILED

        result = await controller.generate()

        assert result.accepted is True
        assert controller.session.outcome == ProcessingOutcome.SUCCESS

    @pytest.mark.asyncio
    async def test_pipeline_exception_does_not_escape(self, controller, pipeline, png_bytes):
        pipeline.process = AsyncMock(side_effect=RuntimeError("boom"))

        result = await resolve(controller, png_bytes)

        assert result.accepted is True
        assert controller.state == StudioState.RESOLVED
        assert controller.session.outcome == ProcessingOutcome.FAILED


class TestPersistence:

    @pytest.mark.asyncio
    async def test_save_draft_without_model(self, controller, products, png_bytes):
        await resolve(controller, png_bytes)

        result = await controller.save_draft()

        assert result.accepted is True
        assert controller.state == StudioState.DONE
        fields = products.create_draft.await_args.args[0]
        assert fields.status == "draft"
        assert fields.price == "0"
        assert fields.category == "Shirts"
        assert fields.seller_id == "seller-1"
        assert fields.processed_image == TRYON_URL
        assert fields.original_image == TRYON_URL
        products.patch_model.assert_not_called()

    @pytest.mark.asyncio
    async def test_url_upload_keeps_source_as_original(self, controller, products):
        controller.select_image(ImageSource.from_url(SOURCE_URL))
        controller.select_category("Top")
        await controller.generate()

        await controller.save_draft()

        fields = products.create_draft.await_args.args[0]
        assert fields.original_image == SOURCE_URL
        assert fields.processed_image == TRYON_URL

    @pytest.mark.asyncio
    async def test_save_draft_patches_selected_model(self, controller, products, png_bytes, fashion_model):
        controller.select_image(ImageSource.from_bytes(png_bytes))
        controller.select_category("Top")
        await controller.select_model(fashion_model)
        await controller.generate()

        await controller.save_draft()

        products.patch_model.assert_awaited_once_with("prod-1", "model-ama", TRYON_URL)
        assert controller.session.display_image_ref == PREVIEW_URL

    @pytest.mark.asyncio
    async def test_changing_model_after_done_patches_once(
        self, controller, products, png_bytes, fashion_model, other_fashion_model
    ):
        controller.select_image(ImageSource.from_bytes(png_bytes))
        controller.select_category("Top")
        await controller.select_model(fashion_model)
        await controller.generate()
        await controller.save_draft()
        products.patch_model.reset_mock()

        result = await controller.select_model(other_fashion_model)

        assert result.accepted is True
        assert controller.state == StudioState.DONE
        products.patch_model.assert_awaited_once_with("prod-1", "model-kofi", TRYON_URL)
        assert products.create_draft.await_count == 1

    @pytest.mark.asyncio
    async def test_only_latest_patch_updates_preview(
        self, controller, products, png_bytes, fashion_model, other_fashion_model
    ):
        await resolve(controller, png_bytes)
        await controller.save_draft()

        async def patch(product_id, model_id, preview_url=None):
            if model_id == "model-ama":
                # A second selection lands while the first patch is in flight
                await controller.select_model(other_fashion_model)
                return DraftProduct(id=product_id, ai_preview_url="https://cdn.example.com/old.png")
            return DraftProduct(id=product_id, ai_preview_url="https://cdn.example.com/new.png")

        products.patch_model = AsyncMock(side_effect=patch)

        await controller.select_model(fashion_model)

        assert controller.session.display_image_ref == "https://cdn.example.com/new.png"
        assert controller.session.draft.ai_preview_url == "https://cdn.example.com/new.png"

    @pytest.mark.asyncio
    async def test_create_failure_keeps_image_and_can_retry(self, controller, products, png_bytes):
        await resolve(controller, png_bytes)
        products.create_draft = AsyncMock(side_effect=[
            ProductStorageError("Failed to create product"),
            DraftProduct(id="prod-2"),
        ])

        failed = await controller.save_draft()

        assert failed.accepted is False
        assert controller.state == StudioState.PERSIST_FAILED
        assert controller.session.display_image_ref == TRYON_URL
        assert controller.session.error == "Failed to create product"

        retried = await controller.retry_persistence()

        assert retried.accepted is True
        assert controller.state == StudioState.DONE
        assert controller.session.draft.id == "prod-2"
        assert controller.session.error is None

    @pytest.mark.asyncio
    async def test_patch_failure_is_retryable(self, controller, products, png_bytes, fashion_model):
        await resolve(controller, png_bytes)
        await controller.save_draft()
        products.patch_model = AsyncMock(side_effect=[
            ProductStorageError("Product service unreachable"),
            DraftProduct(id="prod-1", ai_preview_url=PREVIEW_URL),
        ])

        await controller.select_model(fashion_model)

        assert controller.state == StudioState.DONE
        assert controller.session.patch_pending is True
        assert controller.session.display_image_ref == TRYON_URL

        result = await controller.retry_persistence()

        assert result.accepted is True
        assert controller.session.patch_pending is False
        assert controller.session.display_image_ref == PREVIEW_URL

    @pytest.mark.asyncio
    async def test_clearing_model_drops_failed_patch(self, controller, products, png_bytes, fashion_model):
        await resolve(controller, png_bytes)
        await controller.save_draft()
        products.patch_model = AsyncMock(side_effect=ProductStorageError("Product service unreachable"))
        await controller.select_model(fashion_model)
        assert controller.session.patch_pending is True

        result = await controller.select_model(None)

        assert result.accepted is True
        assert controller.session.patch_pending is False
        assert controller.session.error is None
        assert controller.session.auto_model is True
        assert (await controller.retry_persistence()).accepted is False
        products.patch_model.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_model_change_refused_while_generating(self, controller, png_bytes, fashion_model):
        controller.select_image(ImageSource.from_bytes(png_bytes))
        controller.select_category("Top")
        controller.session.state = StudioState.GENERATING

        result = await controller.select_model(fashion_model)

        assert result.accepted is False
        assert controller.session.selected_model is None

    @pytest.mark.asyncio
    async def test_cannot_save_failed_result(self, controller, pipeline, products, png_bytes):
        pipeline.process = AsyncMock(return_value=FAILED)
        await resolve(controller, png_bytes)

        result = await controller.save_draft()

        assert result.accepted is False
        products.create_draft.assert_not_called()

    @pytest.mark.asyncio
    async def test_run_again_clears_linkage_only(self, controller, products, png_bytes):
        await resolve(controller, png_bytes)
        await controller.save_draft()

        result = controller.run_again()

        assert result.state == StudioState.IDLE
        assert controller.session.image is None
        assert controller.session.result is None
        assert controller.session.draft is None
        assert controller.session.category == StudioCategory.TOP
        products.create_draft.assert_awaited_once()


class TestEndToEnd:
    """Real pipeline and stage clients over a mocked network."""

    @pytest.mark.asyncio
    async def test_overlay_failure_still_produces_draft(self, config, mock_http, products, png_bytes):
        def cutout_service(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"success": True, "processedImageUrl": CUTOUT_URL})

        def tryon_service(request: httpx.Request) -> httpx.Response:
            return httpx.Response(503, json={"success": False, "message": "Virtual try-on is down"})

        pipeline = ProcessingPipeline(
            config,
            background_removal=BackgroundRemovalClient(
                BackgroundRemovalConfig(), client=mock_http(cutout_service)
            ),
            model_overlay=ModelOverlayClient(ModelOverlayConfig(), client=mock_http(tryon_service)),
        )
        controller = StudioSessionController(pipeline, products, seller_id="seller-1")

        controller.select_image(ImageSource.from_bytes(png_bytes, filename="a.png"))
        controller.select_category("Top")
        await controller.generate()

        result = controller.session.result
        assert result.succeeded is True
        assert result.outcome == ProcessingOutcome.DEGRADED
        assert result.final_image_ref == CUTOUT_URL
        assert "Virtual try-on is down" in result.stage_narrative

        await controller.save_draft()

        fields = products.create_draft.await_args.args[0]
        assert fields.status == "draft"
        assert fields.category == "Shirts"
        assert fields.processed_image == CUTOUT_URL
        assert fields.original_image == CUTOUT_URL
        assert controller.state == StudioState.DONE

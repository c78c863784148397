"""
Tests for PersonaController — lifecycle transitions, analysis merge and
user-facing error handling. Gateway calls are replaced with AsyncMocks.
"""

import asyncio
from unittest.mock import AsyncMock, patch

import pytest

from conftest import SAMPLE_BATCH
from persona_marketer.controller import (
    ANALYZE_ERROR_MESSAGE,
    PERSONA_ERROR_MESSAGE,
    VISUAL_ERROR_MESSAGE,
    PersonaController,
)
from persona_marketer.errors import (
    ConfigurationError,
    NoContentGeneratedError,
    RequestInProgressError,
    ResponseFormatError,
)
from persona_marketer.models import ImageBlob, LoadingState, ProductData
from persona_marketer.response_parser import parse_batch


@pytest.fixture
def batch(batch_dict):
    return parse_batch(batch_dict)


# ============================================================================
# Persona submission
# ============================================================================

class TestSubmit:
    @pytest.mark.asyncio
    async def test_success(self, product, settings, batch):
        controller = PersonaController(settings=settings)
        with patch("persona_marketer.gateway.generate_personas", new=AsyncMock(return_value=batch)) as gen:
            personas = await controller.submit(product)

        gen.assert_awaited_once_with(product, settings=settings)
        assert controller.state == LoadingState.SUCCESS
        assert controller.error is None
        assert [p.persona_id for p in personas] == ["TECH-FREE", "TECH-SALON", "OWNER", "DIY"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "exc",
        [ConfigurationError("no key"), ResponseFormatError("bad json"), RuntimeError("503")],
    )
    async def test_failure_sets_generic_message(self, product, exc):
        controller = PersonaController()
        with patch("persona_marketer.gateway.generate_personas", new=AsyncMock(side_effect=exc)):
            personas = await controller.submit(product)

        assert personas == []
        assert controller.state == LoadingState.ERROR
        assert controller.error == PERSONA_ERROR_MESSAGE

    @pytest.mark.asyncio
    async def test_new_submission_resets_previous_results(self, product, batch):
        controller = PersonaController()
        with patch("persona_marketer.gateway.generate_personas", new=AsyncMock(return_value=batch)):
            await controller.submit(product)
        controller.visuals["OWNER"] = "data:image/png;base64,AAAA"

        with patch("persona_marketer.gateway.generate_personas", new=AsyncMock(side_effect=RuntimeError("boom"))):
            await controller.submit(product)

        assert controller.personas == []
        assert controller.visuals == {}
        assert controller.state == LoadingState.ERROR

    @pytest.mark.asyncio
    async def test_state_while_in_flight(self, product, batch):
        controller = PersonaController()
        seen = []

        async def fake_generate(data, settings=None):
            seen.append(controller.state)
            return batch

        with patch("persona_marketer.gateway.generate_personas", new=fake_generate):
            await controller.submit(product)

        assert seen == [LoadingState.GENERATING_PERSONAS]

    @pytest.mark.asyncio
    async def test_rejects_blank_required_fields(self):
        controller = PersonaController(product=ProductData(title="Only a title"))
        with patch("persona_marketer.gateway.generate_personas", new=AsyncMock()) as gen:
            await controller.submit()

        gen.assert_not_awaited()
        assert controller.state == LoadingState.ERROR
        assert "description" in controller.error
        assert "brand_voice" in controller.error

    @pytest.mark.asyncio
    async def test_one_request_at_a_time(self, product, batch):
        controller = PersonaController()
        release = asyncio.Event()

        async def slow_generate(data, settings=None):
            await release.wait()
            return batch

        with patch("persona_marketer.gateway.generate_personas", new=slow_generate):
            first = asyncio.ensure_future(controller.submit(product))
            await asyncio.sleep(0)
            assert controller.is_busy
            with pytest.raises(RequestInProgressError):
                await controller.submit(product)
            release.set()
            await first

        assert controller.state == LoadingState.SUCCESS


# ============================================================================
# Analysis
# ============================================================================

class TestAnalyze:
    @pytest.mark.asyncio
    async def test_merges_only_returned_fields(self):
        existing = ProductData(
            description="Typed by hand",
            key_features=["Manual feature"],
            brand_voice="Playful",
        )
        controller = PersonaController(product=existing)
        patch_data = {"title": "Widget", "price": "R99.00"}

        with patch("persona_marketer.gateway.analyze_product", new=AsyncMock(return_value=patch_data)) as analyze:
            product = await controller.analyze(url="https://shop.test/widget")

        analyze.assert_awaited_once_with("https://shop.test/widget", None, settings=None)
        assert product.title == "Widget"
        assert product.price == "R99.00"
        assert product.description == "Typed by hand"
        assert product.key_features == ["Manual feature"]
        assert product.brand_voice == "Playful"
        assert product.url == "https://shop.test/widget"
        assert controller.state == LoadingState.IDLE

    @pytest.mark.asyncio
    async def test_requires_url_or_image(self):
        controller = PersonaController()
        with patch("persona_marketer.gateway.analyze_product", new=AsyncMock()) as analyze:
            with pytest.raises(ValueError, match="URL or upload an image"):
                await controller.analyze()
        analyze.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_image_only(self, png_bytes):
        image = ImageBlob(source=png_bytes)
        controller = PersonaController(product=ProductData(image=image))
        with patch("persona_marketer.gateway.analyze_product", new=AsyncMock(return_value={})) as analyze:
            await controller.analyze()
        analyze.assert_awaited_once_with("", image, settings=None)

    @pytest.mark.asyncio
    async def test_failure_keeps_manual_input(self, product):
        controller = PersonaController(product=product)
        with patch(
            "persona_marketer.gateway.analyze_product",
            new=AsyncMock(side_effect=ResponseFormatError("not json")),
        ):
            result = await controller.analyze()

        assert result is product
        assert result.title == "Gel Polish Set"
        assert controller.analyze_error == ANALYZE_ERROR_MESSAGE
        assert controller.state == LoadingState.IDLE


# ============================================================================
# Visuals
# ============================================================================

class TestGenerateVisual:
    @pytest.mark.asyncio
    async def test_stores_visual_per_persona(self, product, batch):
        controller = PersonaController()
        with patch("persona_marketer.gateway.generate_personas", new=AsyncMock(return_value=batch)):
            await controller.submit(product)

        uri = "data:image/png;base64,AAAA"
        with patch("persona_marketer.gateway.generate_visual", new=AsyncMock(return_value=uri)) as gen:
            result = await controller.generate_visual("OWNER")

        expected_prompt = batch.personas[2].meta_ad_assets.creative_concept.prompt_for_imagen
        gen.assert_awaited_once_with(expected_prompt, settings=None)
        assert result == uri
        assert controller.visuals == {"OWNER": uri}
        assert controller.visual_states["OWNER"] == LoadingState.SUCCESS
        assert controller.state == LoadingState.SUCCESS

    @pytest.mark.asyncio
    async def test_failure_is_per_persona(self, product, batch):
        controller = PersonaController()
        with patch("persona_marketer.gateway.generate_personas", new=AsyncMock(return_value=batch)):
            await controller.submit(product)

        with patch(
            "persona_marketer.gateway.generate_visual",
            new=AsyncMock(side_effect=NoContentGeneratedError("No image generated.")),
        ):
            result = await controller.generate_visual("DIY")

        assert result is None
        assert controller.visual_errors == {"DIY": VISUAL_ERROR_MESSAGE}
        assert controller.state == LoadingState.SUCCESS
        assert len(controller.personas) == 4

    @pytest.mark.asyncio
    async def test_result_from_replaced_batch_is_discarded(self, product, batch):
        controller = PersonaController()
        with patch("persona_marketer.gateway.generate_personas", new=AsyncMock(return_value=batch)):
            await controller.submit(product)

        release = asyncio.Event()

        async def slow_visual(prompt, settings=None):
            await release.wait()
            return "data:image/png;base64,OLD"

        with patch("persona_marketer.gateway.generate_visual", new=slow_visual):
            pending = asyncio.ensure_future(controller.generate_visual("OWNER"))
            await asyncio.sleep(0)

            with patch("persona_marketer.gateway.generate_personas", new=AsyncMock(return_value=parse_batch(SAMPLE_BATCH))):
                await controller.submit(product)

            release.set()
            result = await pending

        assert result is None
        assert controller.visuals == {}
        assert "OWNER" not in controller.visual_states
        assert controller.state == LoadingState.SUCCESS

    @pytest.mark.asyncio
    async def test_failure_from_replaced_batch_is_discarded(self, product, batch):
        controller = PersonaController()
        with patch("persona_marketer.gateway.generate_personas", new=AsyncMock(return_value=batch)):
            await controller.submit(product)

        release = asyncio.Event()

        async def failing_visual(prompt, settings=None):
            await release.wait()
            raise NoContentGeneratedError("No image generated.")

        with patch("persona_marketer.gateway.generate_visual", new=failing_visual):
            pending = asyncio.ensure_future(controller.generate_visual("DIY"))
            await asyncio.sleep(0)

            with patch("persona_marketer.gateway.generate_personas", new=AsyncMock(return_value=parse_batch(SAMPLE_BATCH))):
                await controller.submit(product)

            release.set()
            await pending

        assert controller.visual_errors == {}
        assert controller.visual_states == {}

    @pytest.mark.asyncio
    async def test_unknown_persona(self):
        with pytest.raises(KeyError):
            await PersonaController().generate_visual("NOPE")

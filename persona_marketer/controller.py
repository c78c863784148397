from __future__ import annotations

"""
Request lifecycle for one user session.

The controller sits between the UI and the gateway. It holds the product
form data, runs one analysis or persona request at a time, and turns any
failure into a user-safe message plus an ERROR state. Underlying details go
to the log only.
"""

import logging
from typing import Dict, List, Optional

from . import gateway
from .config import GeminiSettings
from .errors import RequestInProgressError
from .models import ImageBlob, LoadingState, Persona, ProductData
from .product_loader import merge_analysis, validate_product

PERSONA_ERROR_MESSAGE = "Failed to generate personas. Please verify your API key and try again."
ANALYZE_ERROR_MESSAGE = "Failed to analyze product. Please fill details manually."
ANALYZE_MISSING_INPUT_MESSAGE = "Please provide a URL or upload an image to analyze."
VISUAL_ERROR_MESSAGE = "Failed to generate image. Please try again."

_IN_FLIGHT = (LoadingState.ANALYZING, LoadingState.GENERATING_PERSONAS)


class PersonaController:
    """Tracks IDLE -> in flight -> SUCCESS | ERROR for a single session."""

    def __init__(
            self,
            product: Optional[ProductData] = None,
            settings: Optional[GeminiSettings] = None,
    ):
        self.product = product or ProductData()
        self.settings = settings

        self.state = LoadingState.IDLE
        self.personas: List[Persona] = []
        self.error: Optional[str] = None
        self.analyze_error: Optional[str] = None

        # Visuals are tracked per persona so rendering one image does not
        # disturb the batch that is on screen.
        self.visuals: Dict[str, str] = {}
        self.visual_states: Dict[str, LoadingState] = {}
        self.visual_errors: Dict[str, str] = {}

    @property
    def is_busy(self) -> bool:
        return self.state in _IN_FLIGHT

    def _ensure_idle(self) -> None:
        if self.is_busy:
            raise RequestInProgressError(f"A request is already in progress ({self.state.value}).")

    async def analyze(
            self,
            url: Optional[str] = None,
            image: Optional[ImageBlob] = None,
    ) -> ProductData:
        """
        Auto-fill the product form from a URL and/or image.

        Failures leave the form untouched and set analyze_error; the user can
        keep typing details manually.
        """
        self._ensure_idle()

        url = url if url is not None else self.product.url
        image = image if image is not None else self.product.image
        if not url and image is None:
            raise ValueError(ANALYZE_MISSING_INPUT_MESSAGE)

        previous_state = self.state
        self.state = LoadingState.ANALYZING
        self.analyze_error = None
        try:
            patch = await gateway.analyze_product(url or "", image, settings=self.settings)
        except Exception as exc:
            logging.error("Product analysis failed: %s", exc)
            self.analyze_error = ANALYZE_ERROR_MESSAGE
            return self.product
        finally:
            self.state = previous_state

        self.product = merge_analysis(self.product, patch)
        if url:
            self.product.url = url
        if image is not None:
            self.product.image = image
        return self.product

    async def submit(self, product: Optional[ProductData] = None) -> List[Persona]:
        """
        Generate personas for the product.

        Previous results are cleared first. On failure the state is ERROR,
        error holds a user-facing message and an empty list is returned.
        """
        self._ensure_idle()
        if product is not None:
            self.product = product

        self.state = LoadingState.GENERATING_PERSONAS
        self.error = None
        self.personas = []
        self.visuals.clear()
        self.visual_states.clear()
        self.visual_errors.clear()

        try:
            validate_product(self.product)
        except ValueError as exc:
            logging.warning("Rejected product submission: %s", exc)
            self.error = str(exc)
            self.state = LoadingState.ERROR
            return []

        try:
            batch = await gateway.generate_personas(self.product, settings=self.settings)
        except Exception as exc:
            logging.error("Persona generation failed: %s", exc)
            self.error = PERSONA_ERROR_MESSAGE
            self.state = LoadingState.ERROR
            return []

        self.personas = list(batch.personas)
        self.state = LoadingState.SUCCESS
        return self.personas

    def _is_current(self, persona: Persona) -> bool:
        return any(p is persona for p in self.personas)

    def _find_persona(self, persona_id: str) -> Persona:
        for persona in self.personas:
            if persona.persona_id == persona_id:
                return persona
        raise KeyError(f"Unknown persona_id {persona_id!r}")

    async def generate_visual(self, persona_id: str) -> Optional[str]:
        """
        Render the creative concept of one persona.

        Returns the data URI, or None on failure (see visual_errors).
        """
        persona = self._find_persona(persona_id)
        if self.visual_states.get(persona_id) == LoadingState.GENERATING_IMAGE:
            raise RequestInProgressError(f"Image for {persona_id} is already being generated.")

        self.visual_states[persona_id] = LoadingState.GENERATING_IMAGE
        self.visual_errors.pop(persona_id, None)

        prompt = persona.meta_ad_assets.creative_concept.prompt_for_imagen
        try:
            data_uri = await gateway.generate_visual(prompt, settings=self.settings)
        except Exception as exc:
            if not self._is_current(persona):
                logging.info("Dropping failed visual for %s from a replaced batch: %s", persona_id, exc)
                return None
            logging.error("Image generation failed for %s: %s", persona_id, exc)
            self.visual_errors[persona_id] = VISUAL_ERROR_MESSAGE
            self.visual_states[persona_id] = LoadingState.ERROR
            return None

        if not self._is_current(persona):
            # A new batch was submitted while this image was rendering.
            logging.info("Dropping visual for %s from a replaced batch.", persona_id)
            return None

        self.visuals[persona_id] = data_uri
        self.visual_states[persona_id] = LoadingState.SUCCESS
        return data_uri

"""Image generation for blog post feature images.

Uses Google Gemini's image generation capability via the google-genai SDK.
Requests arrive as OpenAI-style pixel sizes; Gemini takes an aspect ratio,
so sizes are mapped through :data:`SIZE_TO_ASPECT_RATIO`.
"""

from __future__ import annotations

import logging
import os

from google import genai
from google.genai import types

from ghostpost.blog.models import GeneratedImage
from ghostpost.errors import ConfigurationError, UpstreamError

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-3-pro-image-preview"

SIZE_TO_ASPECT_RATIO: dict[str, str] = {
    "1024x1024": "1:1",
    "1024x1536": "2:3",
    "1536x1024": "3:2",
}


class ImageGenerator:
    """Generate images from text prompts via Google Gemini."""

    def __init__(self, api_key: str | None = None, model: str | None = None) -> None:
        self.api_key = api_key or os.environ.get("GOOGLE_AI_API_KEY", "")
        self.model = model or os.environ.get("IMAGE_MODEL", DEFAULT_MODEL)
        if not self.api_key:
            raise ConfigurationError(
                "Image generation is not configured: no API key",
                suggestion="Set GOOGLE_AI_API_KEY or [images].api_key",
            )
        self._client: genai.Client | None = None

    def _get_client(self) -> genai.Client:
        """Lazy-create and cache the genai Client."""
        if self._client is None:
            self._client = genai.Client(api_key=self.api_key)
        return self._client

    def generate_image(self, prompt: str, size: str = "1024x1024", n: int = 1) -> list[GeneratedImage]:
        """Generate *n* images for *prompt*.

        Args:
            prompt: Description of the desired image.
            size: Pixel size, one of the keys of SIZE_TO_ASPECT_RATIO.
            n: Number of images wanted.

        Returns:
            Up to *n* images with their media type and raw bytes.

        Raises:
            UpstreamError: If the Gemini call fails.
        """
        aspect_ratio = SIZE_TO_ASPECT_RATIO.get(size, "1:1")
        logger.info("Generating %d image(s) with %s at %s", n, self.model, aspect_ratio)

        try:
            client = self._get_client()
            response = client.models.generate_content(
                model=self.model,
                contents=prompt,
                config=types.GenerateContentConfig(
                    response_modalities=["TEXT", "IMAGE"],
                    image_config=types.ImageConfig(aspect_ratio=aspect_ratio),
                ),
            )
        except Exception as exc:
            raise UpstreamError(f"Image generation failed: {exc}") from exc

        images: list[GeneratedImage] = []
        for part in response.parts or []:
            inline = part.inline_data
            if inline is not None and inline.data:
                images.append(
                    GeneratedImage(media_type=inline.mime_type or "image/png", data=inline.data)
                )
            if len(images) >= n:
                break

        if not images:
            logger.warning("No image data in response for prompt: %s", prompt[:80])
        return images

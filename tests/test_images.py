"""Tests for Gemini-backed image generation."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from ghostpost.errors import ConfigurationError, UpstreamError
from ghostpost.shared.images import DEFAULT_MODEL, ImageGenerator


def _part(data: bytes | None, mime_type: str = "image/png") -> MagicMock:
    part = MagicMock()
    if data is None:
        part.inline_data = None
    else:
        part.inline_data.data = data
        part.inline_data.mime_type = mime_type
    return part


def _client_returning(parts: list) -> MagicMock:
    mock_response = MagicMock()
    mock_response.parts = parts
    mock_client = MagicMock()
    mock_client.models.generate_content.return_value = mock_response
    return mock_client


class TestConstruction:
    def test_requires_api_key(self):
        with patch.dict("os.environ", {}, clear=True):
            with pytest.raises(ConfigurationError, match="no API key"):
                ImageGenerator()

    def test_reads_env(self):
        with patch.dict("os.environ", {"GOOGLE_AI_API_KEY": "env-key", "IMAGE_MODEL": "m1"}):
            gen = ImageGenerator()
        assert gen.api_key == "env-key"
        assert gen.model == "m1"

    def test_explicit_values_win(self):
        with patch.dict("os.environ", {"GOOGLE_AI_API_KEY": "env-key"}, clear=True):
            gen = ImageGenerator(api_key="explicit")
        assert gen.api_key == "explicit"
        assert gen.model == DEFAULT_MODEL


class TestGenerateImage:
    @pytest.mark.parametrize(
        ("size", "aspect"),
        [("1024x1024", "1:1"), ("1024x1536", "2:3"), ("1536x1024", "3:2"), ("800x600", "1:1")],
    )
    def test_maps_size_to_aspect_ratio(self, size, aspect):
        mock_client = _client_returning([_part(b"png")])
        mock_types = MagicMock()
        with (
            patch("ghostpost.shared.images.genai") as mock_genai,
            patch("ghostpost.shared.images.types", mock_types),
        ):
            mock_genai.Client.return_value = mock_client
            ImageGenerator(api_key="k").generate_image("a fox", size=size)

        mock_types.ImageConfig.assert_called_once_with(aspect_ratio=aspect)
        call_kwargs = mock_client.models.generate_content.call_args.kwargs
        assert call_kwargs["contents"] == "a fox"
        assert call_kwargs["model"] == DEFAULT_MODEL

    def test_collects_inline_images(self):
        mock_client = _client_returning(
            [_part(None), _part(b"one", "image/jpeg"), _part(b"two"), _part(b"three")]
        )
        with (
            patch("ghostpost.shared.images.genai") as mock_genai,
            patch("ghostpost.shared.images.types", MagicMock()),
        ):
            mock_genai.Client.return_value = mock_client
            images = ImageGenerator(api_key="k").generate_image("a fox", n=2)

        assert [(i.media_type, i.data) for i in images] == [("image/jpeg", b"one"), ("image/png", b"two")]

    def test_text_only_response_returns_empty(self):
        mock_client = _client_returning([_part(None)])
        with (
            patch("ghostpost.shared.images.genai") as mock_genai,
            patch("ghostpost.shared.images.types", MagicMock()),
        ):
            mock_genai.Client.return_value = mock_client
            assert ImageGenerator(api_key="k").generate_image("a fox") == []

    def test_api_error_is_upstream_error(self):
        mock_client = MagicMock()
        mock_client.models.generate_content.side_effect = RuntimeError("API error")
        with (
            patch("ghostpost.shared.images.genai") as mock_genai,
            patch("ghostpost.shared.images.types", MagicMock()),
        ):
            mock_genai.Client.return_value = mock_client
            with pytest.raises(UpstreamError, match="API error"):
                ImageGenerator(api_key="k").generate_image("a fox")

    def test_client_is_cached(self):
        with (
            patch("ghostpost.shared.images.genai") as mock_genai,
            patch("ghostpost.shared.images.types", MagicMock()),
        ):
            mock_genai.Client.return_value = _client_returning([_part(b"x")])
            gen = ImageGenerator(api_key="k")
            gen.generate_image("one")
            gen.generate_image("two")
        mock_genai.Client.assert_called_once_with(api_key="k")

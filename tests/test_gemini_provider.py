"""
Tests for the Gemini generation providers.

The genai client is mocked; real response types are used so payload
extraction runs against the SDK's own models.
"""

import asyncio
import base64
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from google.genai import errors as genai_errors
from google.genai import types

from banner_credits.exceptions import ProviderFailureError
from banner_credits.models.api import ProviderErrorKind
from banner_credits.services.gemini_provider import (
    GeminiImageProvider,
    GeminiPromptProvider,
    _GeminiProvider,
    extract_image_payloads,
    extract_text_payloads,
)

PNG_BYTES = b"\x89PNG\r\n\x1a\nfake"


def image_response(*blobs: bytes, mime_type: str = "image/png") -> types.GenerateContentResponse:
    """generate_content response carrying inline image parts."""
    parts = [types.Part(text="Here is your banner.")]
    parts.extend(types.Part(inline_data=types.Blob(data=b, mime_type=mime_type)) for b in blobs)
    return types.GenerateContentResponse(
        candidates=[types.Candidate(content=types.Content(role="model", parts=parts))]
    )


def mock_client(response=None, side_effect=None) -> MagicMock:
    """genai.Client stand-in exposing client.aio.models.generate_content."""
    client = MagicMock()
    client.aio.models.generate_content = AsyncMock(return_value=response, side_effect=side_effect)
    return client


class TestExtractImagePayloads:
    """Tests for image payload extraction."""

    def test_inline_image_becomes_data_url(self):
        payloads = extract_image_payloads(image_response(PNG_BYTES))

        encoded = base64.b64encode(PNG_BYTES).decode("ascii")
        assert payloads == (f"data:image/png;base64,{encoded}",)

    def test_keeps_reported_mime_type(self):
        payloads = extract_image_payloads(image_response(PNG_BYTES, mime_type="image/jpeg"))

        assert payloads[0].startswith("data:image/jpeg;base64,")

    def test_multiple_images_in_order(self):
        payloads = extract_image_payloads(image_response(b"first", b"second"))

        assert len(payloads) == 2
        assert payloads[0].endswith(base64.b64encode(b"first").decode("ascii"))

    def test_text_only_response_is_empty(self):
        response = types.GenerateContentResponse(
            candidates=[
                types.Candidate(content=types.Content(parts=[types.Part(text="Sorry, no.")]))
            ]
        )

        assert extract_image_payloads(response) == ()

    def test_missing_candidates_is_empty(self):
        assert extract_image_payloads(types.GenerateContentResponse()) == ()
        assert extract_image_payloads(SimpleNamespace(candidates=None)) == ()

    def test_candidate_without_content_is_empty(self):
        response = SimpleNamespace(candidates=[SimpleNamespace(content=None)])

        assert extract_image_payloads(response) == ()


class TestExtractTextPayloads:
    """Tests for text payload extraction."""

    def test_text_is_stripped(self):
        assert extract_text_payloads(SimpleNamespace(text="  A hiker at dawn \n")) == (
            "A hiker at dawn",
        )

    @pytest.mark.parametrize("text", [None, "", "   "])
    def test_blank_text_is_empty(self, text):
        assert extract_text_payloads(SimpleNamespace(text=text)) == ()


class TestGeminiImageProvider:
    """Tests for the image provider call and failure classification."""

    async def test_successful_generation(self):
        client = mock_client(image_response(PNG_BYTES))
        provider = GeminiImageProvider("key", "image-model", 5.0, client=client)

        result = await provider.generate("alpine lake")

        assert result.first_payload is not None
        assert result.first_payload.startswith("data:image/png;base64,")
        assert result.model == "image-model"

    async def test_request_carries_prompt_and_aspect_ratio(self):
        client = mock_client(image_response(PNG_BYTES))
        provider = GeminiImageProvider("key", "image-model", 5.0, aspect_ratio="21:9", client=client)

        await provider.generate("alpine lake")

        kwargs = client.aio.models.generate_content.await_args.kwargs
        assert kwargs["model"] == "image-model"
        assert kwargs["contents"].parts[0].text == "alpine lake"
        assert kwargs["config"].image_config.aspect_ratio == "21:9"

    async def test_empty_response_returns_no_payloads(self):
        provider = GeminiImageProvider(
            "key", "image-model", 5.0, client=mock_client(types.GenerateContentResponse())
        )

        result = await provider.generate("alpine lake")

        assert result.payloads == ()
        assert result.first_payload is None

    async def test_missing_api_key_is_not_configured(self):
        provider = GeminiImageProvider("", "image-model", 5.0)

        with pytest.raises(ProviderFailureError) as exc_info:
            await provider.generate("alpine lake")

        assert exc_info.value.kind == ProviderErrorKind.NOT_CONFIGURED

    async def test_slow_call_times_out(self):
        async def slow_call(**kwargs):
            await asyncio.sleep(1)

        client = MagicMock()
        client.aio.models.generate_content = slow_call
        provider = GeminiImageProvider("key", "image-model", 0.01, client=client)

        with pytest.raises(ProviderFailureError) as exc_info:
            await provider.generate("alpine lake")

        assert exc_info.value.kind == ProviderErrorKind.TIMEOUT

    async def test_transport_timeout(self):
        client = mock_client(side_effect=httpx.ReadTimeout("read timed out"))
        provider = GeminiImageProvider("key", "image-model", 5.0, client=client)

        with pytest.raises(ProviderFailureError) as exc_info:
            await provider.generate("alpine lake")

        assert exc_info.value.kind == ProviderErrorKind.TIMEOUT

    async def test_api_error_is_upstream_error(self):
        error = genai_errors.APIError(
            503, {"error": {"code": 503, "message": "overloaded", "status": "UNAVAILABLE"}}
        )
        provider = GeminiImageProvider(
            "key", "image-model", 5.0, client=mock_client(side_effect=error)
        )

        with pytest.raises(ProviderFailureError) as exc_info:
            await provider.generate("alpine lake")

        assert exc_info.value.kind == ProviderErrorKind.UPSTREAM_ERROR
        assert exc_info.value.__cause__ is error

    async def test_unrecognized_error_propagates(self):
        """Unknown exceptions are left for the gateway to classify."""
        provider = GeminiImageProvider(
            "key", "image-model", 5.0, client=mock_client(side_effect=KeyError("parts"))
        )

        with pytest.raises(KeyError):
            await provider.generate("alpine lake")


class TestGeminiPromptProvider:
    """Tests for the prompt drafting provider."""

    async def test_returns_drafted_prompt(self):
        client = mock_client(SimpleNamespace(text="A hiker on a ridge", candidates=None))
        provider = GeminiPromptProvider("key", "text-model", 5.0, client=client)

        result = await provider.generate("draft a prompt")

        assert result.payloads == ("A hiker on a ridge",)
        kwargs = client.aio.models.generate_content.await_args.kwargs
        assert kwargs["contents"] == "draft a prompt"
        assert kwargs["config"] is None


class TestGeminiProviderBase:
    """Tests for the shared Gemini base class."""

    def test_base_requires_request_and_extract_hooks(self):
        with pytest.raises(TypeError):
            _GeminiProvider(api_key="key", model="gemini", timeout_seconds=1.0)

"""
Gemini Generation Provider Implementation.

NO DICTIONARIES - All data uses strongly typed models.

Every failure leaves this module as a ProviderFailureError with a
ProviderErrorKind; callers never inspect error messages.
"""

import asyncio
import base64
from abc import ABC, abstractmethod
from typing import Any

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types
from structlog import get_logger

from banner_credits.exceptions import ProviderFailureError
from banner_credits.models.api import ProviderErrorKind
from banner_credits.observability import metrics
from banner_credits.observability.tracing import trace_operation
from banner_credits.services.generation_provider import GenerationResult

logger = get_logger(__name__)


def extract_image_payloads(response: Any) -> tuple[str, ...]:
    """
    Pull inline image parts out of a generate_content response as data URLs.

    Tolerates missing candidates / content / parts; returns an empty
    tuple when nothing usable is present.
    """
    payloads: list[str] = []
    for candidate in getattr(response, "candidates", None) or []:
        content = getattr(candidate, "content", None)
        for part in getattr(content, "parts", None) or []:
            inline = getattr(part, "inline_data", None)
            if inline is None or not inline.data:
                continue
            data = inline.data
            encoded = (
                base64.b64encode(data).decode("ascii") if isinstance(data, bytes) else str(data)
            )
            mime_type = inline.mime_type or "image/png"
            payloads.append(f"data:{mime_type};base64,{encoded}")
    return tuple(payloads)


def extract_text_payloads(response: Any) -> tuple[str, ...]:
    """Return the response text as a single payload, if non-blank."""
    text = getattr(response, "text", None)
    if text and text.strip():
        return (text.strip(),)
    return ()


class _GeminiProvider(ABC):
    """Shared call/classify logic for Gemini models."""

    name = "gemini"

    def __init__(
        self,
        api_key: str,
        model: str,
        timeout_seconds: float,
        client: genai.Client | None = None,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.timeout_seconds = timeout_seconds
        self._client = client

    @property
    def client(self) -> genai.Client:
        """Get Gemini client."""
        if self._client is None:
            if not self.api_key:
                raise ProviderFailureError(
                    ProviderErrorKind.NOT_CONFIGURED, "GEMINI_API_KEY is not set"
                )
            self._client = genai.Client(api_key=self.api_key)
        return self._client

    @abstractmethod
    def _build_request(self, provider_input: str) -> tuple[Any, types.GenerateContentConfig | None]:
        """Return the contents and config for one model call."""

    @abstractmethod
    def _extract(self, response: Any) -> tuple[str, ...]:
        """Return the usable payloads from a model response."""

    async def generate(self, provider_input: str) -> GenerationResult:
        """Call the model once, bounded by `timeout_seconds`."""
        contents, config = self._build_request(provider_input)
        client = self.client

        with trace_operation("provider_generate", model=self.model) as span:
            loop = asyncio.get_running_loop()
            start = loop.time()
            try:
                response = await asyncio.wait_for(
                    client.aio.models.generate_content(
                        model=self.model, contents=contents, config=config
                    ),
                    timeout=self.timeout_seconds,
                )
            except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
                metrics.record_provider_call(self.model, "timeout", loop.time() - start)
                logger.warning(
                    "provider_call_timed_out", model=self.model, timeout=self.timeout_seconds
                )
                raise ProviderFailureError(
                    ProviderErrorKind.TIMEOUT,
                    f"{self.model} did not answer within {self.timeout_seconds}s",
                ) from exc
            except genai_errors.APIError as exc:
                metrics.record_provider_call(self.model, "upstream_error", loop.time() - start)
                logger.error(
                    "provider_call_failed",
                    model=self.model,
                    code=exc.code,
                    status=exc.status,
                    error=str(exc),
                )
                raise ProviderFailureError(
                    ProviderErrorKind.UPSTREAM_ERROR, f"{self.model} returned {exc.code}"
                ) from exc

            payloads = self._extract(response)
            metrics.record_provider_call(
                self.model, "ok" if payloads else "empty", loop.time() - start
            )
            span.set_attribute("payload_count", len(payloads))

        logger.info("provider_call_completed", model=self.model, payload_count=len(payloads))
        return GenerationResult(payloads=payloads, model=self.model)


class GeminiImageProvider(_GeminiProvider):
    """Banner background generation with a Gemini image model."""

    name = "gemini-image"

    def __init__(
        self,
        api_key: str,
        model: str,
        timeout_seconds: float,
        aspect_ratio: str = "16:9",
        client: genai.Client | None = None,
    ) -> None:
        super().__init__(api_key, model, timeout_seconds, client)
        self.aspect_ratio = aspect_ratio

    def _build_request(self, provider_input: str) -> tuple[Any, types.GenerateContentConfig | None]:
        contents = types.Content(role="user", parts=[types.Part(text=provider_input)])
        config = types.GenerateContentConfig(
            image_config=types.ImageConfig(aspect_ratio=self.aspect_ratio),
        )
        return contents, config

    def _extract(self, response: Any) -> tuple[str, ...]:
        return extract_image_payloads(response)


class GeminiPromptProvider(_GeminiProvider):
    """Drafts image prompts with a Gemini text model."""

    name = "gemini-prompt"

    def _build_request(self, provider_input: str) -> tuple[Any, types.GenerateContentConfig | None]:
        return provider_input, None

    def _extract(self, response: Any) -> tuple[str, ...]:
        return extract_text_payloads(response)

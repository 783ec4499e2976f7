"""
Generation Provider Protocol - Provider-agnostic interface.

NO DICTIONARIES - All data uses strongly typed models.
"""

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class GenerationResult:
    """
    Provider-agnostic generation result.

    `payloads` holds every usable item the provider returned (data URLs
    for images, plain text for prompts). An empty tuple is a failure.
    """

    payloads: tuple[str, ...]
    model: str | None = None

    @property
    def first_payload(self) -> str | None:
        """First usable payload, if any."""
        return self.payloads[0] if self.payloads else None


class GenerationProvider(Protocol):
    """
    Generation provider protocol.

    Implementations are billed per accepted call and must raise
    ProviderFailureError (with a ProviderErrorKind) for every failure
    they can recognize. They never retry.
    """

    name: str

    async def generate(self, provider_input: str) -> GenerationResult:
        """
        Call the external service once.

        Args:
            provider_input: Free-text theme or fully composed prompt

        Returns:
            Result with zero or more payloads

        Raises:
            ProviderFailureError: If the call failed or timed out
        """
        ...

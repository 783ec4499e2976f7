"""
Domain Models - Internal business logic models using dataclasses.

NO DICTIONARIES - All data structures are strongly typed dataclasses.
"""

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum


@dataclass(frozen=True)
class AccountData:
    """Immutable account data snapshot."""

    email: str
    credits: int
    is_pro: bool
    created_at: datetime

    def __post_init__(self) -> None:
        """Validate account invariants."""
        if not self.email:
            raise ValueError("email cannot be empty")
        if self.credits < 0:
            raise ValueError(f"Credits cannot be negative: {self.credits}")


class GenerationOutcome(str, Enum):
    """Lifecycle of a single metered generation."""

    PENDING = "pending"
    DELIVERED = "delivered"
    FAILED = "failed"
    REJECTED = "rejected"


@dataclass(frozen=True)
class GenerationAttempt:
    """
    Transient record of one metered generation.

    Never persisted; the gateway threads it through reserve / invoke /
    compensate so the terminal state can be logged in one place.
    """

    requested_by: str
    provider_input: str
    outcome: GenerationOutcome = GenerationOutcome.PENDING
    charged_credit: bool = False

    def reserved(self) -> "GenerationAttempt":
        """Credit taken, provider not yet called."""
        return replace(self, charged_credit=True)

    def delivered(self) -> "GenerationAttempt":
        """Provider returned a usable payload; the credit stays spent."""
        return replace(self, outcome=GenerationOutcome.DELIVERED)

    def failed(self, refunded: bool) -> "GenerationAttempt":
        """Provider failed; `refunded` says whether the credit came back."""
        return replace(self, outcome=GenerationOutcome.FAILED, charged_credit=not refunded)

    def rejected(self) -> "GenerationAttempt":
        """Reservation refused; nothing was charged."""
        return replace(self, outcome=GenerationOutcome.REJECTED, charged_credit=False)


@dataclass(frozen=True)
class MeteredGeneration:
    """Delivered payload plus the balance after the charge."""

    payload: str
    credits: int

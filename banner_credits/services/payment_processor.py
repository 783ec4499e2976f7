"""
Payment Processor Protocol - Processor-agnostic interface.

NO DICTIONARIES - All data uses strongly typed models.
"""

from dataclasses import dataclass
from typing import Protocol

# Capture status the processor reports for money actually moved
CAPTURE_COMPLETED = "COMPLETED"


@dataclass(frozen=True)
class OrderResult:
    """
    Processor-agnostic checkout order.

    Returned after successful order creation; the editor hands
    `order_id` to the processor's checkout button.
    """

    order_id: str
    status: str


@dataclass(frozen=True)
class CaptureResult:
    """Server-confirmed capture outcome."""

    order_id: str
    status: str

    @property
    def completed(self) -> bool:
        """True only when the processor confirms the money moved."""
        return self.status == CAPTURE_COMPLETED


class PaymentProcessor(Protocol):
    """
    Payment processor protocol.

    Any processor (PayPal, Stripe, ...) must implement this interface.
    """

    name: str

    async def create_order(self) -> OrderResult:
        """
        Create a checkout order for the subscription.

        Raises:
            PaymentNotConfiguredError: If credentials are missing
            PaymentProviderError: If order creation fails
        """
        ...

    async def capture_order(self, order_id: str) -> CaptureResult:
        """
        Capture a previously approved order.

        Returns:
            Capture result with the processor's own status

        Raises:
            PaymentNotConfiguredError: If credentials are missing
            PaymentProviderError: If the capture call fails
        """
        ...

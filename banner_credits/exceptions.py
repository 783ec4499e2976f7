"""
Exception Classes - Strongly typed exception hierarchy.

NO DICTIONARIES - All exceptions have typed attributes.
"""

from banner_credits.models.api import ProviderErrorKind


class LedgerError(Exception):
    """Base exception for all ledger and gateway errors."""

    pass


class InsufficientCreditsError(LedgerError):
    """Raised when account has insufficient credits for a reservation."""

    def __init__(self, balance: int, required: int) -> None:
        self.balance = balance
        self.required = required
        super().__init__(f"Insufficient credits. Balance: {balance}, Required: {required}")


class AccountNotFoundError(LedgerError):
    """Raised when account doesn't exist."""

    def __init__(self, email: str) -> None:
        self.email = email
        super().__init__(f"Account not found: {email}")


class WriteVerificationError(LedgerError):
    """Raised when database write verification fails."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(f"Write verification failed: {message}")


class ProviderFailureError(LedgerError):
    """
    Raised when the generation provider does not deliver a usable payload.

    Always raised after a credit was reserved, so it is refund-eligible.
    `credits` carries the balance after compensation when it is known.
    """

    def __init__(
        self, kind: ProviderErrorKind, message: str, credits: int | None = None
    ) -> None:
        self.kind = kind
        self.message = message
        self.credits = credits
        super().__init__(f"Generation provider failed ({kind.value}): {message}")


class RefundFailureError(LedgerError):
    """Raised when a compensating refund could not be written."""

    def __init__(self, email: str, amount: int, message: str) -> None:
        self.email = email
        self.amount = amount
        self.message = message
        super().__init__(f"Refund of {amount} credit(s) to {email} failed: {message}")


class PaymentNotConfiguredError(LedgerError):
    """Raised when payment processor credentials are missing."""

    def __init__(self, processor: str) -> None:
        self.processor = processor
        super().__init__(f"Payment processor {processor} is not configured")


class PaymentProviderError(LedgerError):
    """Raised when payment processor operation fails."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(f"Payment provider error: {message}")


class CaptureNotCompletedError(LedgerError):
    """Raised when the processor reports a capture that did not complete."""

    def __init__(self, order_id: str, status: str) -> None:
        self.order_id = order_id
        self.status = status
        super().__init__(f"Order {order_id} capture not completed (status: {status})")


class OrderAlreadyCapturedError(LedgerError):
    """Raised when credits were already granted for a payment order."""

    def __init__(self, order_id: str) -> None:
        self.order_id = order_id
        super().__init__(f"Order {order_id} was already captured")

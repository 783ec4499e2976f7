"""
Account Service - profile bootstrap and subscription capture.

Credits from a payment are granted only after the processor itself
reports the capture as completed; nothing the client says about a
payment is trusted.
"""

from structlog import get_logger

from banner_credits.config import settings
from banner_credits.exceptions import (
    AccountNotFoundError,
    CaptureNotCompletedError,
    LedgerError,
)
from banner_credits.models.domain import AccountData
from banner_credits.observability import metrics
from banner_credits.services.ledger import LedgerStore
from banner_credits.services.payment_processor import OrderResult, PaymentProcessor

logger = get_logger(__name__)


class AccountService:
    """Account bootstrap and payment grants over a ledger store."""

    def __init__(
        self,
        ledger: LedgerStore,
        processor: PaymentProcessor,
        subscription_bonus: int | None = None,
    ) -> None:
        self.ledger = ledger
        self.processor = processor
        self.subscription_bonus = (
            settings.subscription_bonus_credits
            if subscription_bonus is None
            else subscription_bonus
        )

    async def get_or_create_account(self, email: str) -> AccountData:
        """Fetch the account, creating it with signup credits on first access."""
        return await self.ledger.get_or_create(email)

    async def create_order(self) -> OrderResult:
        """Open a checkout order with the payment processor."""
        return await self.processor.create_order()

    async def capture_payment(self, order_id: str, email: str) -> AccountData:
        """
        Capture an order and grant the subscription.

        The account must exist before any money is captured.

        Raises:
            AccountNotFoundError: No account for `email`
            CaptureNotCompletedError: Processor did not report COMPLETED
            OrderAlreadyCapturedError: Credits already granted for the order
            PaymentNotConfiguredError / PaymentProviderError: Processor problems
        """
        if await self.ledger.get_account(email) is None:
            raise AccountNotFoundError(email)

        try:
            capture = await self.processor.capture_order(order_id)
            if not capture.completed:
                raise CaptureNotCompletedError(order_id, capture.status)

            account = await self._grant_subscription(email, order_id)
        except LedgerError as exc:
            metrics.record_payment_capture(self.processor.name, type(exc).__name__)
            logger.warning(
                "payment_capture_not_applied",
                email=email,
                order_id=order_id,
                reason=type(exc).__name__,
                error=str(exc),
            )
            raise

        metrics.record_payment_capture(self.processor.name, "completed")
        logger.info(
            "payment_captured",
            email=email,
            order_id=order_id,
            credits=account.credits,
            is_pro=account.is_pro,
        )
        return account

    async def _grant_subscription(self, email: str, order_id: str) -> AccountData:
        """Apply the subscription for a capture the processor completed."""
        try:
            return await self.ledger.apply_subscription(email, order_id, self.subscription_bonus)
        except LedgerError:
            raise
        except Exception:
            # Money has moved but no credits were granted
            metrics.record_payment_capture(self.processor.name, "grant_failed")
            logger.error(
                "payment_grant_failed",
                email=email,
                order_id=order_id,
                exc_info=True,
            )
            raise

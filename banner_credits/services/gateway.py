"""
Metered Generation Gateway - reserve / invoke / compensate.

NO DICTIONARIES - All operations use strongly typed domain models.

Every request ends in exactly one of:
- delivered: payload returned, one credit consumed
- rejected: no credit taken, provider never called
- failed: provider failed, credit refunded (best-effort)
"""

from structlog import get_logger

from banner_credits.config import settings
from banner_credits.exceptions import (
    AccountNotFoundError,
    InsufficientCreditsError,
    ProviderFailureError,
    RefundFailureError,
)
from banner_credits.models.api import ProviderErrorKind, TransactionType
from banner_credits.models.domain import GenerationAttempt, MeteredGeneration
from banner_credits.observability import metrics
from banner_credits.services.generation_provider import GenerationProvider
from banner_credits.services.ledger import LedgerStore

logger = get_logger(__name__)


class MeteredGenerationGateway:
    """
    Credit-metered access to a paid generation provider.

    The reservation commits before the provider is called, so a slow
    provider never holds a lock on the account, and a crash after the
    call can only lose the refund, never hand out a free generation.
    """

    def __init__(
        self,
        ledger: LedgerStore,
        provider: GenerationProvider,
        cost: int | None = None,
    ) -> None:
        self.ledger = ledger
        self.provider = provider
        self.cost = settings.generation_cost if cost is None else cost

    async def generate_metered(self, email: str, provider_input: str) -> MeteredGeneration:
        """
        Charge one generation and call the provider.

        Returns:
            Delivered payload and the balance read after the charge

        Raises:
            InsufficientCreditsError: Nothing charged, provider not called
            AccountNotFoundError: Nothing charged, provider not called
            ProviderFailureError: Provider failed; `credits` holds the
                balance after the refund, or None if the refund failed
        """
        attempt = GenerationAttempt(requested_by=email, provider_input=provider_input)

        # First metered call may arrive before any profile fetch
        await self.ledger.get_or_create(email)

        # 1. Reserve
        try:
            await self.ledger.reserve_credits(email, self.cost)
        except (InsufficientCreditsError, AccountNotFoundError) as exc:
            attempt = attempt.rejected()
            metrics.record_generation(self.provider.name, attempt.outcome.value)
            logger.info(
                "generation_rejected",
                email=email,
                provider=self.provider.name,
                reason=type(exc).__name__,
            )
            raise

        attempt = attempt.reserved()

        # 2. Invoke, then read the authoritative balance
        try:
            result = await self.provider.generate(provider_input)
            payload = result.first_payload
            if payload is None:
                raise ProviderFailureError(
                    ProviderErrorKind.EMPTY_RESPONSE, "Provider returned no usable payload"
                )
            credits = await self.ledger.get_balance(email)
        except Exception as exc:
            # 3. Compensate - anything raised after the reservation is refund-eligible
            if isinstance(exc, ProviderFailureError):
                failure = exc
            else:
                failure = ProviderFailureError(
                    ProviderErrorKind.UNEXPECTED, str(exc) or type(exc).__name__
                )

            failure.credits = await self._compensate(email, failure)
            attempt = attempt.failed(refunded=failure.credits is not None)
            metrics.record_generation(self.provider.name, attempt.outcome.value)
            logger.warning(
                "generation_failed",
                email=email,
                provider=self.provider.name,
                kind=failure.kind.value,
                error=failure.message,
                refunded=not attempt.charged_credit,
                credits=failure.credits,
            )
            if failure is exc:
                raise
            raise failure from exc

        # 4. Respond
        attempt = attempt.delivered()
        metrics.record_generation(self.provider.name, attempt.outcome.value)
        logger.info(
            "generation_delivered",
            email=email,
            provider=self.provider.name,
            credits=credits,
        )
        return MeteredGeneration(payload=payload, credits=credits)

    async def _compensate(self, email: str, failure: ProviderFailureError) -> int | None:
        """
        Refund the reserved credit.

        Best-effort: a storage error here is logged and swallowed so the
        caller still sees the provider failure that caused it.
        """
        try:
            balance = await self.ledger.grant_credits(
                email, self.cost, transaction_type=TransactionType.REFUND
            )
        except Exception as exc:
            refund_error = RefundFailureError(email, self.cost, str(exc) or type(exc).__name__)
            metrics.record_refund(success=False)
            logger.error(
                "credit_refund_failed",
                email=email,
                amount=self.cost,
                provider_error=failure.kind.value,
                error=str(refund_error),
                exc_info=True,
            )
            return None

        metrics.record_refund(success=True)
        logger.info(
            "credit_refunded",
            email=email,
            amount=self.cost,
            provider_error=failure.kind.value,
            balance_after=balance,
        )
        return balance

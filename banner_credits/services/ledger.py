"""
Ledger Store - Contention-safe account storage.

NO DICTIONARIES - All operations use strongly typed domain models.

Every read-then-write runs in ONE transaction under a row lock
(SELECT ... FOR UPDATE) and commits before returning, so no lock is
held while the caller talks to an external service.
"""

from datetime import UTC, datetime
from typing import Protocol

from sqlalchemy import select, text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from structlog import get_logger

from banner_credits.config import settings
from banner_credits.db.models import Account, CreditTransaction
from banner_credits.exceptions import (
    AccountNotFoundError,
    InsufficientCreditsError,
    OrderAlreadyCapturedError,
    WriteVerificationError,
)
from banner_credits.models.api import TransactionType
from banner_credits.models.domain import AccountData

logger = get_logger(__name__)


def _utc_now() -> datetime:
    """Get current UTC timestamp."""
    return datetime.now(UTC)


class LedgerStore(Protocol):
    """
    Ledger store protocol.

    The gateway and the payment flow depend on this interface only;
    the concrete store is injected per request.
    """

    async def get_or_create(self, email: str) -> AccountData:
        """Return the account, creating it with signup credits if absent."""
        ...

    async def get_account(self, email: str) -> AccountData | None:
        """Fresh read of the account, or None."""
        ...

    async def get_balance(self, email: str) -> int:
        """
        Fresh read of the credit balance.

        Raises:
            AccountNotFoundError: Account doesn't exist
        """
        ...

    async def reserve_credits(self, email: str, amount: int = 1) -> int:
        """
        Atomically deduct `amount` credits and return the new balance.

        Raises:
            AccountNotFoundError: Account doesn't exist
            InsufficientCreditsError: Balance below `amount`
        """
        ...

    async def grant_credits(
        self,
        email: str,
        amount: int,
        transaction_type: TransactionType = TransactionType.GRANT,
        reference: str | None = None,
    ) -> int:
        """
        Atomically add `amount` credits and return the new balance.

        Raises:
            AccountNotFoundError: Account doesn't exist
        """
        ...

    async def set_pro(self, email: str, is_pro: bool) -> AccountData:
        """
        Atomically set the subscription flag.

        Raises:
            AccountNotFoundError: Account doesn't exist
        """
        ...

    async def apply_subscription(self, email: str, order_ref: str, bonus: int) -> AccountData:
        """
        Grant `bonus` credits and set is_pro in one transaction.

        Raises:
            AccountNotFoundError: Account doesn't exist
            OrderAlreadyCapturedError: Order reference already granted
        """
        ...

    async def ping(self) -> None:
        """Raise if the store is unreachable."""
        ...


def _to_account_data(account: Account) -> AccountData:
    """Convert ORM row to immutable snapshot."""
    return AccountData(
        email=account.email,
        credits=account.credits,
        is_pro=account.is_pro,
        created_at=account.created_at,
    )


class SqlLedgerStore:
    """
    PostgreSQL ledger store.

    All write operations follow the pattern:
    1. Lock the account row
    2. Validate invariants
    3. Write balance and audit row
    4. Commit (or roll back and re-raise)
    """

    def __init__(self, session: AsyncSession, signup_credits: int | None = None) -> None:
        """Initialize ledger store with database session."""
        self.session = session
        self.signup_credits = (
            settings.signup_credits if signup_credits is None else signup_credits
        )

    async def get_or_create(self, email: str) -> AccountData:
        """
        Return the account, creating it with signup credits if absent.

        Concurrent first access is settled by the primary key: the loser
        of the insert race rolls back and re-reads the winner's row.
        """
        account = await self._find_account(email)
        if account is not None:
            return _to_account_data(account)

        now = _utc_now()
        new_account = Account(
            email=email,
            credits=self.signup_credits,
            is_pro=False,
            created_at=now,
            updated_at=now,
        )
        self.session.add(new_account)
        if self.signup_credits > 0:
            self.session.add(
                CreditTransaction(
                    email=email,
                    transaction_type=TransactionType.SIGNUP.value,
                    delta=self.signup_credits,
                    balance_after=self.signup_credits,
                    created_at=now,
                )
            )

        try:
            await self.session.flush()
            await self.session.commit()
        except IntegrityError as e:
            # Race condition - account created by another request
            logger.info("account_creation_race_lost", email=email, error=str(e))
            await self.session.rollback()
            account = await self._find_account(email)
            if account is None:
                raise WriteVerificationError(f"Account creation failed: {str(e)}") from e
            return _to_account_data(account)

        logger.info("account_created", email=email, credits=self.signup_credits)
        return _to_account_data(new_account)

    async def get_account(self, email: str) -> AccountData | None:
        """Fresh read of the account, or None."""
        account = await self._find_account(email)
        return _to_account_data(account) if account is not None else None

    async def get_balance(self, email: str) -> int:
        """Fresh read of the credit balance."""
        account = await self._find_account(email)
        if account is None:
            raise AccountNotFoundError(email)
        return account.credits

    async def reserve_credits(self, email: str, amount: int = 1) -> int:
        """
        Atomically deduct `amount` credits and return the new balance.

        Rejects (never clamps) a reservation that would go negative.
        """
        if amount <= 0:
            raise ValueError(f"Reservation amount must be positive: {amount}")

        try:
            account = await self._lock_account_for_update(email)
            if account is None:
                raise AccountNotFoundError(email)

            if account.credits < amount:
                raise InsufficientCreditsError(account.credits, amount)

            balance_after = account.credits - amount
            account.credits = balance_after
            self.session.add(
                CreditTransaction(
                    email=email,
                    transaction_type=TransactionType.RESERVATION.value,
                    delta=-amount,
                    balance_after=balance_after,
                    created_at=_utc_now(),
                )
            )
            await self.session.flush()
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        logger.info("credits_reserved", email=email, amount=amount, balance_after=balance_after)
        return balance_after

    async def grant_credits(
        self,
        email: str,
        amount: int,
        transaction_type: TransactionType = TransactionType.GRANT,
        reference: str | None = None,
    ) -> int:
        """Atomically add `amount` credits and return the new balance."""
        if amount <= 0:
            raise ValueError(f"Grant amount must be positive: {amount}")

        try:
            account = await self._lock_account_for_update(email)
            if account is None:
                raise AccountNotFoundError(email)

            balance_after = account.credits + amount
            account.credits = balance_after
            self.session.add(
                CreditTransaction(
                    email=email,
                    transaction_type=transaction_type.value,
                    delta=amount,
                    balance_after=balance_after,
                    external_reference=reference,
                    created_at=_utc_now(),
                )
            )
            await self.session.flush()
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        logger.info(
            "credits_granted",
            email=email,
            amount=amount,
            transaction_type=transaction_type.value,
            balance_after=balance_after,
        )
        return balance_after

    async def set_pro(self, email: str, is_pro: bool) -> AccountData:
        """Atomically set the subscription flag."""
        try:
            account = await self._lock_account_for_update(email)
            if account is None:
                raise AccountNotFoundError(email)

            account.is_pro = is_pro
            await self.session.flush()
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        logger.info("pro_flag_set", email=email, is_pro=is_pro)
        return _to_account_data(account)

    async def apply_subscription(self, email: str, order_ref: str, bonus: int) -> AccountData:
        """
        Grant `bonus` credits and set is_pro in one transaction.

        The order reference is stored on the audit row; the unique
        constraint on (transaction_type, external_reference) rejects a
        replay that slips past the lookup.
        """
        if bonus <= 0:
            raise ValueError(f"Subscription bonus must be positive: {bonus}")

        try:
            if await self._find_transaction(TransactionType.SUBSCRIPTION, order_ref):
                raise OrderAlreadyCapturedError(order_ref)

            account = await self._lock_account_for_update(email)
            if account is None:
                raise AccountNotFoundError(email)

            balance_after = account.credits + bonus
            account.credits = balance_after
            account.is_pro = True
            self.session.add(
                CreditTransaction(
                    email=email,
                    transaction_type=TransactionType.SUBSCRIPTION.value,
                    delta=bonus,
                    balance_after=balance_after,
                    external_reference=order_ref,
                    created_at=_utc_now(),
                )
            )
            await self.session.flush()
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            raise OrderAlreadyCapturedError(order_ref) from e
        except Exception:
            await self.session.rollback()
            raise

        logger.info(
            "subscription_applied",
            email=email,
            order_id=order_ref,
            bonus=bonus,
            balance_after=balance_after,
        )
        return _to_account_data(account)

    async def ping(self) -> None:
        """Round-trip to the database."""
        await self.session.execute(text("SELECT 1"))

    # ========================================================================
    # Private Helper Methods
    # ========================================================================

    async def _find_account(self, email: str) -> Account | None:
        """Find account by email, bypassing the identity map."""
        stmt = (
            select(Account)
            .where(Account.email == email)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def _lock_account_for_update(self, email: str) -> Account | None:
        """Lock account row for update (SELECT FOR UPDATE)."""
        stmt = (
            select(Account)
            .where(Account.email == email)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def _find_transaction(
        self, transaction_type: TransactionType, reference: str
    ) -> CreditTransaction | None:
        """Find an audit row by external reference."""
        stmt = select(CreditTransaction).where(
            CreditTransaction.transaction_type == transaction_type.value,
            CreditTransaction.external_reference == reference,
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

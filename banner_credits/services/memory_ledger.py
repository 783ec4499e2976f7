"""
In-Memory Ledger Store - process-local balances for development.

Used when LEDGER_BACKEND=memory. Each account is guarded by its own
asyncio.Lock, which gives the same per-record serialization as the
row lock in SqlLedgerStore. Balances vanish on restart.
"""

import asyncio
from dataclasses import dataclass, field
from datetime import UTC, datetime

from structlog import get_logger

from banner_credits.config import settings
from banner_credits.exceptions import (
    AccountNotFoundError,
    InsufficientCreditsError,
    OrderAlreadyCapturedError,
)
from banner_credits.models.api import TransactionType
from banner_credits.models.domain import AccountData

logger = get_logger(__name__)


@dataclass
class _AccountRecord:
    email: str
    credits: int
    is_pro: bool
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def snapshot(self) -> AccountData:
        return AccountData(
            email=self.email,
            credits=self.credits,
            is_pro=self.is_pro,
            created_at=self.created_at,
        )


@dataclass(frozen=True)
class LedgerEntry:
    """Audit entry mirroring the credit_transactions table."""

    email: str
    transaction_type: TransactionType
    delta: int
    balance_after: int
    external_reference: str | None = None


class InMemoryLedgerStore:
    """
    Ledger store backed by a dict.

    `io_delay` inserts an await between the read and the write of every
    mutation, standing in for a storage round-trip.
    """

    def __init__(self, signup_credits: int | None = None, io_delay: float = 0.0) -> None:
        self.signup_credits = (
            settings.signup_credits if signup_credits is None else signup_credits
        )
        self.io_delay = io_delay
        self.entries: list[LedgerEntry] = []
        self._accounts: dict[str, _AccountRecord] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._captured_orders: set[str] = set()

    def _lock(self, email: str) -> asyncio.Lock:
        # setdefault has no await point, so two tasks never get different locks
        return self._locks.setdefault(email, asyncio.Lock())

    async def _round_trip(self) -> None:
        await asyncio.sleep(self.io_delay)

    def _record(self, email: str) -> _AccountRecord:
        record = self._accounts.get(email)
        if record is None:
            raise AccountNotFoundError(email)
        return record

    async def get_or_create(self, email: str) -> AccountData:
        """Return the account, creating it with signup credits if absent."""
        async with self._lock(email):
            record = self._accounts.get(email)
            if record is None:
                await self._round_trip()
                record = _AccountRecord(email=email, credits=self.signup_credits, is_pro=False)
                self._accounts[email] = record
                if self.signup_credits > 0:
                    self.entries.append(
                        LedgerEntry(
                            email, TransactionType.SIGNUP, self.signup_credits, record.credits
                        )
                    )
                logger.info("account_created", email=email, credits=record.credits)
            return record.snapshot()

    async def get_account(self, email: str) -> AccountData | None:
        """Current account snapshot, or None."""
        record = self._accounts.get(email)
        return record.snapshot() if record is not None else None

    async def get_balance(self, email: str) -> int:
        """Current credit balance."""
        return self._record(email).credits

    async def reserve_credits(self, email: str, amount: int = 1) -> int:
        """Atomically deduct `amount` credits and return the new balance."""
        if amount <= 0:
            raise ValueError(f"Reservation amount must be positive: {amount}")

        async with self._lock(email):
            record = self._record(email)
            balance = record.credits
            await self._round_trip()
            if balance < amount:
                raise InsufficientCreditsError(balance, amount)
            record.credits = balance - amount
            self.entries.append(
                LedgerEntry(email, TransactionType.RESERVATION, -amount, record.credits)
            )
            logger.info(
                "credits_reserved", email=email, amount=amount, balance_after=record.credits
            )
            return record.credits

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

        async with self._lock(email):
            record = self._record(email)
            balance = record.credits
            await self._round_trip()
            record.credits = balance + amount
            self.entries.append(
                LedgerEntry(email, transaction_type, amount, record.credits, reference)
            )
            logger.info(
                "credits_granted",
                email=email,
                amount=amount,
                transaction_type=transaction_type.value,
                balance_after=record.credits,
            )
            return record.credits

    async def set_pro(self, email: str, is_pro: bool) -> AccountData:
        """Atomically set the subscription flag."""
        async with self._lock(email):
            record = self._record(email)
            record.is_pro = is_pro
            logger.info("pro_flag_set", email=email, is_pro=is_pro)
            return record.snapshot()

    async def apply_subscription(self, email: str, order_ref: str, bonus: int) -> AccountData:
        """Grant `bonus` credits and set is_pro as one step."""
        if bonus <= 0:
            raise ValueError(f"Subscription bonus must be positive: {bonus}")

        async with self._lock(email):
            if order_ref in self._captured_orders:
                raise OrderAlreadyCapturedError(order_ref)
            record = self._record(email)
            # Claimed before the first await; orders are not scoped to one email lock
            self._captured_orders.add(order_ref)
            balance = record.credits
            await self._round_trip()
            record.credits = balance + bonus
            record.is_pro = True
            self.entries.append(
                LedgerEntry(
                    email, TransactionType.SUBSCRIPTION, bonus, record.credits, order_ref
                )
            )
            logger.info(
                "subscription_applied",
                email=email,
                order_id=order_ref,
                bonus=bonus,
                balance_after=record.credits,
            )
            return record.snapshot()

    async def ping(self) -> None:
        """Always reachable."""
        return None

"""
Database Models - SQLAlchemy ORM models with strict typing.

NO DICTIONARIES - All columns use Mapped[] type annotations.
"""

from datetime import UTC, datetime
from uuid import UUID, uuid4

from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    String,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


def utc_now() -> datetime:
    """Get current UTC timestamp."""
    return datetime.now(UTC)


class Account(Base):
    """
    ORM model for accounts table.

    One row per email; `credits` is the only field under contention.
    """

    __tablename__ = "accounts"

    # Identity - email is the natural key
    email: Mapped[str] = mapped_column(String(255), primary_key=True)

    # Balance
    credits: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)

    # Subscription flag - set only by a verified payment capture
    is_pro: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Audit timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now
    )

    __table_args__ = (
        CheckConstraint("credits >= 0", name="ck_credits_non_negative"),
        Index("idx_accounts_updated_at", "updated_at"),
    )

    def __repr__(self) -> str:
        """String representation for debugging."""
        return f"<Account(email={self.email}, credits={self.credits}, is_pro={self.is_pro})>"


class CreditTransaction(Base):
    """
    ORM model for credit_transactions table.

    Append-only audit trail of every ledger mutation.
    """

    __tablename__ = "credit_transactions"

    # Primary Key
    id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), primary_key=True, default=uuid4)

    # Foreign Key to Account
    email: Mapped[str] = mapped_column(
        String(255),
        ForeignKey("accounts.email", ondelete="RESTRICT"),
        nullable=False,
    )

    # Movement
    transaction_type: Mapped[str] = mapped_column(String(20), nullable=False)
    delta: Mapped[int] = mapped_column(BigInteger, nullable=False)
    balance_after: Mapped[int] = mapped_column(BigInteger, nullable=False)

    # External reference (payment order ID for subscriptions)
    external_reference: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Audit timestamp
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )

    __table_args__ = (
        CheckConstraint("delta <> 0", name="ck_transaction_delta_non_zero"),
        CheckConstraint("balance_after >= 0", name="ck_transaction_balance_non_negative"),
        UniqueConstraint(
            "transaction_type",
            "external_reference",
            name="uq_transaction_reference",
        ),
        Index("idx_credit_transactions_email", "email"),
        Index("idx_credit_transactions_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        """String representation for debugging."""
        return (
            f"<CreditTransaction(id={self.id}, email={self.email}, "
            f"type={self.transaction_type}, delta={self.delta})>"
        )

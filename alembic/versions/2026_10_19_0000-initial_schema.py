"""initial schema

Revision ID: 2026_10_19_0000
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID


# revision identifiers, used by Alembic.
revision: str = '2026_10_19_0000'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create accounts and credit_transactions."""

    # ========================================================================
    # Create accounts table
    # ========================================================================
    op.create_table(
        'accounts',
        sa.Column('email', sa.String(255), primary_key=True),
        sa.Column('credits', sa.BigInteger(), nullable=False, server_default='0'),
        sa.Column('is_pro', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('NOW()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('NOW()')),

        # Constraints
        sa.CheckConstraint('credits >= 0', name='ck_credits_non_negative'),
    )

    op.create_index('idx_accounts_updated_at', 'accounts', ['updated_at'])

    # ========================================================================
    # Create credit_transactions table
    # ========================================================================
    op.create_table(
        'credit_transactions',
        sa.Column('id', UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('transaction_type', sa.String(20), nullable=False),
        sa.Column('delta', sa.BigInteger(), nullable=False),
        sa.Column('balance_after', sa.BigInteger(), nullable=False),
        sa.Column('external_reference', sa.String(255), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('NOW()')),

        # Constraints
        sa.CheckConstraint('delta <> 0', name='ck_transaction_delta_non_zero'),
        sa.CheckConstraint('balance_after >= 0', name='ck_transaction_balance_non_negative'),
        sa.UniqueConstraint('transaction_type', 'external_reference', name='uq_transaction_reference'),
        sa.ForeignKeyConstraint(['email'], ['accounts.email'], name='fk_credit_transactions_account', ondelete='RESTRICT'),
    )

    op.create_index('idx_credit_transactions_email', 'credit_transactions', ['email'])
    op.create_index('idx_credit_transactions_created_at', 'credit_transactions', ['created_at'])


def downgrade() -> None:
    """Drop all tables."""
    op.drop_index('idx_credit_transactions_created_at', table_name='credit_transactions')
    op.drop_index('idx_credit_transactions_email', table_name='credit_transactions')
    op.drop_table('credit_transactions')

    op.drop_index('idx_accounts_updated_at', table_name='accounts')
    op.drop_table('accounts')

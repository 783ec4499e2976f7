"""
Tests for the ORM models and the initial migration.
"""

import importlib.util
from pathlib import Path

from sqlalchemy import CheckConstraint, UniqueConstraint, inspect

from banner_credits.db.models import Account, Base, CreditTransaction

# Get project root from test file location
PROJECT_ROOT = Path(__file__).parent.parent
MIGRATION_FILE = PROJECT_ROOT / "alembic" / "versions" / "2026_10_19_0000-initial_schema.py"


def load_migration():
    spec = importlib.util.spec_from_file_location("migration", str(MIGRATION_FILE))
    assert spec is not None and spec.loader is not None
    migration = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(migration)
    return migration


def constraint_names(model: type, kind: type) -> set[str]:
    return {c.name for c in model.__table__.constraints if isinstance(c, kind)}  # type: ignore[attr-defined]


class TestAccountModel:
    """Tests for Account ORM model definition."""

    def test_email_is_primary_key(self):
        mapper = inspect(Account)
        assert [col.key for col in mapper.primary_key] == ["email"]

    def test_credits_cannot_go_negative(self):
        assert "ck_credits_non_negative" in constraint_names(Account, CheckConstraint)

    def test_required_columns(self):
        columns = {col.key: col for col in inspect(Account).columns}

        for name in ("email", "credits", "is_pro", "created_at", "updated_at"):
            assert name in columns, f"Missing column: {name}"
            assert columns[name].nullable is False
        assert "BIGINT" in str(columns["credits"].type)


class TestCreditTransactionModel:
    """Tests for CreditTransaction ORM model definition."""

    def test_order_reference_is_unique_per_type(self):
        assert "uq_transaction_reference" in constraint_names(CreditTransaction, UniqueConstraint)

    def test_email_references_account(self):
        columns = {col.key: col for col in inspect(CreditTransaction).columns}
        targets = {fk.target_fullname for fk in columns["email"].foreign_keys}
        assert targets == {"accounts.email"}

    def test_external_reference_is_optional(self):
        columns = {col.key: col for col in inspect(CreditTransaction).columns}
        assert columns["external_reference"].nullable is True

    def test_indexes(self):
        index_names = {idx.name for idx in CreditTransaction.__table__.indexes}  # type: ignore[attr-defined]
        assert "idx_credit_transactions_email" in index_names
        assert "idx_credit_transactions_created_at" in index_names

    def test_models_share_metadata(self):
        assert set(Base.metadata.tables) == {"accounts", "credit_transactions"}


class TestMigrationFile:
    """Tests for migration file structure."""

    def test_migration_file_exists(self):
        assert MIGRATION_FILE.exists(), f"Migration file not found at {MIGRATION_FILE}"

    def test_migration_is_root_revision(self):
        migration = load_migration()

        assert migration.revision == "2026_10_19_0000"
        assert migration.down_revision is None

    def test_migration_has_upgrade_downgrade(self):
        migration = load_migration()

        assert callable(migration.upgrade)
        assert callable(migration.downgrade)

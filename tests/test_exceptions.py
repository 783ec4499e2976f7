"""
Tests for exception classes.

Covers the typed attributes and string representations callers rely on.
"""

import pytest

from banner_credits.exceptions import (
    AccountNotFoundError,
    CaptureNotCompletedError,
    InsufficientCreditsError,
    LedgerError,
    OrderAlreadyCapturedError,
    PaymentNotConfiguredError,
    PaymentProviderError,
    ProviderFailureError,
    RefundFailureError,
    WriteVerificationError,
)
from banner_credits.models.api import ProviderErrorKind


class TestLedgerError:
    """Tests for base LedgerError."""

    def test_can_be_raised(self):
        with pytest.raises(LedgerError):
            raise LedgerError("test error")

    @pytest.mark.parametrize(
        "exc",
        [
            InsufficientCreditsError(0, 1),
            AccountNotFoundError("a@x.com"),
            WriteVerificationError("lost"),
            ProviderFailureError(ProviderErrorKind.TIMEOUT, "slow"),
            RefundFailureError("a@x.com", 1, "down"),
            PaymentNotConfiguredError("paypal"),
            PaymentProviderError("down"),
            CaptureNotCompletedError("ORDER-1", "PENDING"),
            OrderAlreadyCapturedError("ORDER-1"),
        ],
    )
    def test_all_errors_are_ledger_errors(self, exc):
        assert isinstance(exc, LedgerError)


class TestInsufficientCreditsError:
    """Tests for InsufficientCreditsError."""

    def test_attributes(self):
        exc = InsufficientCreditsError(balance=0, required=1)
        assert exc.balance == 0
        assert exc.required == 1

    def test_message_format(self):
        exc = InsufficientCreditsError(balance=2, required=3)
        assert "Insufficient credits" in str(exc)
        assert "2" in str(exc)
        assert "3" in str(exc)


class TestProviderFailureError:
    """Tests for ProviderFailureError."""

    def test_kind_and_message(self):
        exc = ProviderFailureError(ProviderErrorKind.UPSTREAM_ERROR, "model returned 503")
        assert exc.kind == ProviderErrorKind.UPSTREAM_ERROR
        assert exc.message == "model returned 503"
        assert exc.credits is None
        assert "upstream_error" in str(exc)

    def test_credits_can_be_attached(self):
        exc = ProviderFailureError(ProviderErrorKind.TIMEOUT, "slow", credits=4)
        assert exc.credits == 4


class TestPaymentErrors:
    """Tests for payment error types."""

    def test_capture_not_completed(self):
        exc = CaptureNotCompletedError("ORDER-1", "PENDING")
        assert exc.order_id == "ORDER-1"
        assert exc.status == "PENDING"
        assert "PENDING" in str(exc)

    def test_already_captured(self):
        exc = OrderAlreadyCapturedError("ORDER-1")
        assert exc.order_id == "ORDER-1"
        assert "ORDER-1" in str(exc)

    def test_not_configured(self):
        exc = PaymentNotConfiguredError("paypal")
        assert exc.processor == "paypal"
        assert "not configured" in str(exc)


class TestRefundFailureError:
    """Tests for RefundFailureError."""

    def test_attributes(self):
        exc = RefundFailureError("a@x.com", 1, "ledger down")
        assert exc.email == "a@x.com"
        assert exc.amount == 1
        assert "ledger down" in str(exc)

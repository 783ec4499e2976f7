"""
Tests for API Dependencies.

Tests how the ledger store, providers and services are assembled per
request.
"""

from types import SimpleNamespace

import pytest

from banner_credits.api import dependencies
from banner_credits.api.dependencies import (
    get_account_service,
    get_image_gateway,
    get_image_provider,
    get_ledger_store,
    get_payment_processor,
    get_prompt_gateway,
    get_prompt_provider,
)
from banner_credits.services.accounts import AccountService
from banner_credits.services.gateway import MeteredGenerationGateway
from banner_credits.services.memory_ledger import InMemoryLedgerStore
from conftest import FakeProcessor, FakeProvider


def fake_request(**state) -> SimpleNamespace:
    """Object exposing request.app.state like a Starlette Request."""
    return SimpleNamespace(app=SimpleNamespace(state=SimpleNamespace(**state)))


class TestLedgerStore:
    """Tests for get_ledger_store."""

    async def test_memory_backend_uses_shared_ledger(self, monkeypatch: pytest.MonkeyPatch):
        ledger = InMemoryLedgerStore()
        monkeypatch.setattr(dependencies.settings, "ledger_backend", "memory")

        stores = [store async for store in get_ledger_store(fake_request(memory_ledger=ledger))]

        assert stores == [ledger]


class TestStateDependencies:
    """Tests for collaborators read from app.state."""

    def test_providers_and_processor(self):
        image, prompt, processor = FakeProvider(), FakeProvider(), FakeProcessor()
        request = fake_request(
            image_provider=image, prompt_provider=prompt, payment_processor=processor
        )

        assert get_image_provider(request) is image
        assert get_prompt_provider(request) is prompt
        assert get_payment_processor(request) is processor


class TestServiceDependencies:
    """Tests for gateway and service assembly."""

    def test_gateways_wrap_their_provider(self, ledger: InMemoryLedgerStore):
        image, prompt = FakeProvider(), FakeProvider()

        image_gateway = get_image_gateway(ledger=ledger, provider=image)
        prompt_gateway = get_prompt_gateway(ledger=ledger, provider=prompt)

        assert isinstance(image_gateway, MeteredGenerationGateway)
        assert image_gateway.provider is image
        assert prompt_gateway.provider is prompt
        assert image_gateway.ledger is ledger

    def test_account_service(self, ledger: InMemoryLedgerStore, processor: FakeProcessor):
        service = get_account_service(ledger=ledger, processor=processor)

        assert isinstance(service, AccountService)
        assert service.processor is processor

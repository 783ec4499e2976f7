"""
FastAPI Dependencies - ledger, providers and services per request.

NO DICTIONARIES - All dependencies return typed objects.

Providers and the payment processor are built once in the application
lifespan and kept on app.state; the ledger store is built per request
around its own database session.
"""

from collections.abc import AsyncIterator

from fastapi import Depends, Request

from banner_credits.config import settings
from banner_credits.db.session import get_session
from banner_credits.services.accounts import AccountService
from banner_credits.services.gateway import MeteredGenerationGateway
from banner_credits.services.generation_provider import GenerationProvider
from banner_credits.services.ledger import LedgerStore, SqlLedgerStore
from banner_credits.services.payment_processor import PaymentProcessor


async def get_ledger_store(request: Request) -> AsyncIterator[LedgerStore]:
    """
    FastAPI dependency for the ledger store.

    Usage:
        @router.get("/endpoint")
        async def endpoint(ledger: LedgerStore = Depends(get_ledger_store)):
            ...
    """
    if settings.ledger_backend == "memory":
        yield request.app.state.memory_ledger
        return

    async with get_session() as session:
        yield SqlLedgerStore(session)


def get_image_provider(request: Request) -> GenerationProvider:
    """Background image provider built at startup."""
    provider: GenerationProvider = request.app.state.image_provider
    return provider


def get_prompt_provider(request: Request) -> GenerationProvider:
    """Prompt drafting provider built at startup."""
    provider: GenerationProvider = request.app.state.prompt_provider
    return provider


def get_payment_processor(request: Request) -> PaymentProcessor:
    """Payment processor built at startup."""
    processor: PaymentProcessor = request.app.state.payment_processor
    return processor


def get_image_gateway(
    ledger: LedgerStore = Depends(get_ledger_store),
    provider: GenerationProvider = Depends(get_image_provider),
) -> MeteredGenerationGateway:
    """Metered gateway in front of the image provider."""
    return MeteredGenerationGateway(ledger, provider)


def get_prompt_gateway(
    ledger: LedgerStore = Depends(get_ledger_store),
    provider: GenerationProvider = Depends(get_prompt_provider),
) -> MeteredGenerationGateway:
    """Metered gateway in front of the prompt drafting provider."""
    return MeteredGenerationGateway(ledger, provider)


def get_account_service(
    ledger: LedgerStore = Depends(get_ledger_store),
    processor: PaymentProcessor = Depends(get_payment_processor),
) -> AccountService:
    """Account bootstrap and payment capture service."""
    return AccountService(ledger, processor)

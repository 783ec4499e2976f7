"""
Status API routes - Health check for the load balancer.
"""

from datetime import UTC, datetime

from fastapi import APIRouter, Depends, HTTPException, status
from structlog import get_logger

from banner_credits.api.dependencies import get_ledger_store
from banner_credits.config import settings
from banner_credits.models.api import HealthResponse
from banner_credits.services.ledger import LedgerStore

logger = get_logger(__name__)
router = APIRouter(tags=["status"])


@router.get("/health", response_model=HealthResponse)
async def health_check(ledger: LedgerStore = Depends(get_ledger_store)) -> HealthResponse:
    """
    Health check for load balancer.

    Verifies ledger connectivity.
    """
    try:
        await ledger.ping()

        return HealthResponse(
            status="healthy",
            ledger="connected",
            ledger_backend=settings.ledger_backend,
            timestamp=datetime.now(UTC).isoformat(),
        )

    except Exception as exc:
        logger.warning("ledger_health_check_failed", error=str(exc))
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=HealthResponse(
                status="unhealthy",
                ledger="disconnected",
                ledger_backend=settings.ledger_backend,
                timestamp=datetime.now(UTC).isoformat(),
            ).model_dump(),
        ) from exc

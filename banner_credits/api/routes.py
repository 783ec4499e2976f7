"""
API Routes - FastAPI endpoints for the banner editor.

NO DICTIONARIES - All requests/responses use Pydantic models.
"""

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import SQLAlchemyError
from structlog import get_logger

from banner_credits.api.dependencies import (
    get_account_service,
    get_image_gateway,
    get_prompt_gateway,
)
from banner_credits.exceptions import (
    AccountNotFoundError,
    CaptureNotCompletedError,
    InsufficientCreditsError,
    OrderAlreadyCapturedError,
    PaymentNotConfiguredError,
    PaymentProviderError,
    ProviderFailureError,
)
from banner_credits.models.api import (
    AccountResponse,
    CaptureOrderRequest,
    CaptureOrderResponse,
    CreateOrderResponse,
    ErrorDetail,
    GenerateBackgroundRequest,
    GenerateBackgroundResponse,
    GeneratePromptRequest,
    GeneratePromptResponse,
    normalize_email,
)
from banner_credits.models.domain import MeteredGeneration
from banner_credits.observability import metrics
from banner_credits.services.accounts import AccountService
from banner_credits.services.gateway import MeteredGenerationGateway
from banner_credits.services.prompts import compose_background_prompt, compose_prompt_instruction

logger = get_logger(__name__)
router = APIRouter(prefix="/api")


def _error(
    status_code: int,
    error: str,
    message: str,
    credits: int | None = None,
    purchase_required: bool = False,
) -> HTTPException:
    """Build an HTTPException with a typed error body."""
    detail = ErrorDetail(
        error=error,
        message=message,
        credits=credits,
        purchase_required=purchase_required,
    )
    return HTTPException(status_code=status_code, detail=detail.model_dump())


async def _run_metered(
    gateway: MeteredGenerationGateway, email: str, provider_input: str
) -> MeteredGeneration:
    """Run a metered generation and translate its typed failures."""
    try:
        return await gateway.generate_metered(email, provider_input)

    except InsufficientCreditsError as exc:
        raise _error(
            status.HTTP_403_FORBIDDEN,
            "insufficient_credits",
            "Insufficient credits",
            credits=exc.balance,
            purchase_required=True,
        ) from exc

    except AccountNotFoundError as exc:
        raise _error(
            status.HTTP_404_NOT_FOUND, "account_not_found", "Account not found"
        ) from exc

    except ProviderFailureError as exc:
        metrics.record_error(exc.kind.value, "generate")
        raise _error(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "provider_failure",
            exc.message,
            credits=exc.credits,
        ) from exc


# ============================================================================
# Account
# ============================================================================


@router.get("/user", response_model=AccountResponse)
async def get_user(
    email: str = Query(..., min_length=3, max_length=255),
    service: AccountService = Depends(get_account_service),
) -> AccountResponse:
    """
    Fetch the account for an email.

    Creates the account with signup credits on first access; a missing
    account is never reported as an error.
    """
    try:
        email = normalize_email(email)
    except ValueError as exc:
        raise _error(status.HTTP_422_UNPROCESSABLE_ENTITY, "invalid_email", str(exc)) from exc

    try:
        account = await service.get_or_create_account(email)
    except SQLAlchemyError as exc:
        logger.error("account_fetch_failed", email=email, error=str(exc))
        metrics.record_error(type(exc).__name__, "get_user")
        raise _error(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "storage_error",
            "Failed to fetch user profile",
        ) from exc

    return AccountResponse(email=account.email, credits=account.credits, is_pro=account.is_pro)


# ============================================================================
# Metered Generation
# ============================================================================


@router.post("/generate-background", response_model=GenerateBackgroundResponse)
async def generate_background(
    request: GenerateBackgroundRequest,
    gateway: MeteredGenerationGateway = Depends(get_image_gateway),
) -> GenerateBackgroundResponse:
    """
    Generate a banner background image for one credit.

    A theme is expanded into the banner photography prompt; a prompt
    drafted by the editor is sent as-is.

    Errors:
        403 - Insufficient credits (purchase_required=true)
        404 - Account not found
        500 - Provider failure (credit refunded)
    """
    if request.prompt is not None:
        provider_input = request.prompt
    else:
        provider_input = compose_background_prompt(request.theme or "")

    result = await _run_metered(gateway, request.email, provider_input)
    return GenerateBackgroundResponse(image_url=result.payload, credits=result.credits)


@router.post("/generate-prompt", response_model=GeneratePromptResponse)
async def generate_prompt(
    request: GeneratePromptRequest,
    gateway: MeteredGenerationGateway = Depends(get_prompt_gateway),
) -> GeneratePromptResponse:
    """
    Draft an image prompt from a theme for one credit.

    Same error contract as /api/generate-background.
    """
    result = await _run_metered(gateway, request.email, compose_prompt_instruction(request.theme))
    return GeneratePromptResponse(prompt=result.payload, credits=result.credits)


# ============================================================================
# Payments
# ============================================================================


@router.post("/paypal/create-order", response_model=CreateOrderResponse)
async def create_order(
    service: AccountService = Depends(get_account_service),
) -> CreateOrderResponse:
    """Open a subscription checkout order."""
    try:
        order = await service.create_order()

    except PaymentNotConfiguredError as exc:
        raise _error(
            status.HTTP_503_SERVICE_UNAVAILABLE, "payment_not_configured", str(exc)
        ) from exc

    except PaymentProviderError as exc:
        metrics.record_error("PaymentProviderError", "create_order")
        raise _error(status.HTTP_502_BAD_GATEWAY, "processor_error", exc.message) from exc

    return CreateOrderResponse(order_id=order.order_id, status=order.status)


@router.post("/paypal/capture-order", response_model=CaptureOrderResponse)
async def capture_order(
    request: CaptureOrderRequest,
    service: AccountService = Depends(get_account_service),
) -> CaptureOrderResponse:
    """
    Capture an approved order and grant the subscription.

    Errors:
        400 - Processor did not report the capture as completed
        404 - Account not found
        409 - Order already granted
        500 - Ledger failure after the processor captured the payment
        502 - Processor error
        503 - Payments not configured
    """
    try:
        account = await service.capture_payment(request.order_id, request.email)

    except AccountNotFoundError as exc:
        raise _error(
            status.HTTP_404_NOT_FOUND, "account_not_found", "Account not found"
        ) from exc

    except CaptureNotCompletedError as exc:
        raise _error(
            status.HTTP_400_BAD_REQUEST,
            "capture_not_completed",
            f"Capture status: {exc.status}",
        ) from exc

    except OrderAlreadyCapturedError as exc:
        raise _error(
            status.HTTP_409_CONFLICT, "order_already_captured", str(exc)
        ) from exc

    except PaymentNotConfiguredError as exc:
        raise _error(
            status.HTTP_503_SERVICE_UNAVAILABLE, "payment_not_configured", str(exc)
        ) from exc

    except PaymentProviderError as exc:
        metrics.record_error("PaymentProviderError", "capture_order")
        raise _error(status.HTTP_502_BAD_GATEWAY, "processor_error", exc.message) from exc

    except SQLAlchemyError as exc:
        logger.error(
            "capture_grant_failed",
            order_id=request.order_id,
            email=request.email,
            error=str(exc),
        )
        metrics.record_error(type(exc).__name__, "capture_order")
        raise _error(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "storage_error",
            "Payment captured but credits could not be granted",
        ) from exc

    return CaptureOrderResponse(credits=account.credits, is_pro=account.is_pro)

"""
API Models - Pydantic models for request/response validation.

NO DICTIONARIES - All data structures are strongly typed.

Field names are snake_case; the banner editor speaks camelCase, so
responses serialize with aliases (isPro, imageUrl, orderID).
"""

from enum import Enum
from typing import Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator


class TransactionType(str, Enum):
    """Credit transaction type enumeration."""

    SIGNUP = "signup"
    RESERVATION = "reservation"
    REFUND = "refund"
    SUBSCRIPTION = "subscription"
    GRANT = "grant"


class ProviderErrorKind(str, Enum):
    """Closed classification of generation provider failures."""

    NOT_CONFIGURED = "not_configured"
    TIMEOUT = "timeout"
    UPSTREAM_ERROR = "upstream_error"
    EMPTY_RESPONSE = "empty_response"
    UNEXPECTED = "unexpected"


def normalize_email(value: str) -> str:
    """Normalize an email address used as the account key."""
    email = value.strip().lower()
    local, _, domain = email.partition("@")
    if not local or not domain or " " in email:
        raise ValueError("email must be a valid email address")
    return email


# ============================================================================
# Account Models
# ============================================================================


class AccountResponse(BaseModel):
    """GET /api/user response."""

    email: str
    credits: int
    is_pro: bool = Field(..., serialization_alias="isPro")


# ============================================================================
# Generation Models
# ============================================================================


class GenerateBackgroundRequest(BaseModel):
    """
    POST /api/generate-background request body.

    Exactly one of `theme` (server composes the prompt) or `prompt`
    (already composed by the editor) must be supplied.
    """

    email: str = Field(..., min_length=3, max_length=255)
    theme: str | None = Field(None, min_length=1, max_length=500)
    prompt: str | None = Field(None, min_length=1, max_length=4000)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        """Normalize email address."""
        return normalize_email(v)

    @model_validator(mode="after")
    def validate_input_shape(self) -> "GenerateBackgroundRequest":
        """Require exactly one of theme or prompt."""
        if (self.theme is None) == (self.prompt is None):
            raise ValueError("Provide exactly one of 'theme' or 'prompt'")
        return self


class GenerateBackgroundResponse(BaseModel):
    """POST /api/generate-background response."""

    image_url: str = Field(..., serialization_alias="imageUrl")
    credits: int


class GeneratePromptRequest(BaseModel):
    """POST /api/generate-prompt request body."""

    email: str = Field(..., min_length=3, max_length=255)
    theme: str = Field(..., min_length=1, max_length=500)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        """Normalize email address."""
        return normalize_email(v)


class GeneratePromptResponse(BaseModel):
    """POST /api/generate-prompt response."""

    prompt: str
    credits: int


# ============================================================================
# Payment Models
# ============================================================================


class CreateOrderResponse(BaseModel):
    """POST /api/paypal/create-order response."""

    order_id: str = Field(..., serialization_alias="orderID")
    status: str


class CaptureOrderRequest(BaseModel):
    """POST /api/paypal/capture-order request body."""

    model_config = ConfigDict(populate_by_name=True)

    order_id: str = Field(
        ...,
        pattern=r"^[A-Z0-9]{5,64}$",
        validation_alias=AliasChoices("orderID", "order_id"),
    )
    email: str = Field(..., min_length=3, max_length=255)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        """Normalize email address."""
        return normalize_email(v)


class CaptureOrderResponse(BaseModel):
    """POST /api/paypal/capture-order response."""

    success: Literal[True] = True
    credits: int
    is_pro: bool = Field(..., serialization_alias="isPro")


# ============================================================================
# Health Models
# ============================================================================


class HealthResponse(BaseModel):
    """GET /health response."""

    status: Literal["healthy", "unhealthy"]
    ledger: Literal["connected", "disconnected"]
    ledger_backend: Literal["postgres", "memory"]
    timestamp: str


# ============================================================================
# Error Models
# ============================================================================


class ErrorDetail(BaseModel):
    """Body of `detail` in error responses."""

    error: str
    message: str
    credits: int | None = None
    purchase_required: bool = False

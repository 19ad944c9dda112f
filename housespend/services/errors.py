"""Service-layer errors and the HTTP status each one maps to."""

from enum import Enum
from typing import Any

from fastapi import status


class ServiceError(Exception):
    """Base class for errors raised by services and rendered by the API."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "internal_error"

    def __init__(self, message: str, **extra: Any) -> None:
        super().__init__(message)
        self.message = message
        self.extra = extra

    def to_dict(self) -> dict[str, Any]:
        """Response body for this error."""
        return {"detail": self.message, "code": self.code, **self.extra}


class InvalidInputError(ServiceError):
    """Caller supplied a value that can never be accepted."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "invalid_input"


class NotFoundError(ServiceError):
    """Requested record does not exist for this user."""

    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"


class ConflictError(ServiceError):
    """Request collides with existing state."""

    status_code = status.HTTP_409_CONFLICT
    code = "conflict"


class AnalysisInProgressError(ConflictError):
    """Another analysis of the same receipt has not finished yet."""

    code = "analysis_in_progress"


class PreconditionFailedError(ServiceError):
    """Input is well-formed but the current state does not allow the operation."""

    status_code = status.HTTP_409_CONFLICT
    code = "precondition_failed"


class MissingApiKeyError(PreconditionFailedError):
    """No AI provider API key has been configured."""

    code = "missing_api_key"


class InsufficientStockError(PreconditionFailedError):
    """Consumption larger than the quantity on hand."""

    code = "insufficient_stock"


class UnprocessableAnalysisError(ServiceError):
    """The analysis ran but produced no usable line items."""

    status_code = 422  # Unprocessable Content
    code = "no_valid_items"

    def __init__(self, message: str, warnings: list[str]) -> None:
        super().__init__(message, warnings=warnings)
        self.warnings = warnings


class ProviderErrorCategory(str, Enum):
    """Ways the external AI provider can fail."""

    UNAUTHORIZED = "unauthorized"
    RATE_LIMITED = "rate_limited"
    BAD_GATEWAY = "bad_gateway"
    MALFORMED_RESPONSE = "malformed_response"
    UNREACHABLE = "unreachable"


PROVIDER_STATUS_CODES = {
    ProviderErrorCategory.UNAUTHORIZED: status.HTTP_401_UNAUTHORIZED,
    ProviderErrorCategory.RATE_LIMITED: status.HTTP_429_TOO_MANY_REQUESTS,
    ProviderErrorCategory.BAD_GATEWAY: status.HTTP_502_BAD_GATEWAY,
    ProviderErrorCategory.MALFORMED_RESPONSE: status.HTTP_502_BAD_GATEWAY,
    ProviderErrorCategory.UNREACHABLE: status.HTTP_503_SERVICE_UNAVAILABLE,
}


class AnalysisProviderError(ServiceError):
    """The AI provider call failed."""

    def __init__(self, message: str, category: ProviderErrorCategory) -> None:
        super().__init__(message)
        self.category = category
        self.status_code = PROVIDER_STATUS_CODES[category]
        self.code = f"provider_{category.value}"

    @property
    def is_retryable(self) -> bool:
        """Check if retrying later may succeed without changing configuration."""
        return self.category in (
            ProviderErrorCategory.RATE_LIMITED,
            ProviderErrorCategory.UNREACHABLE,
        )

    def to_dict(self) -> dict[str, Any]:
        return {**super().to_dict(), "retryable": self.is_retryable}

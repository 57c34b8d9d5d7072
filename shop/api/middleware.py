"""
Request validation and error handling.
"""
import logging

from django.http import JsonResponse

from shop.domain.exceptions import ShopError

logger = logging.getLogger(__name__)


class ValidationError(ShopError):
    """Malformed request."""
    code = "VALIDATION_ERROR"

    def __init__(self, message: str, code: str = "VALIDATION_ERROR"):
        super().__init__(message)
        self.code = code


class ErrorHandler:
    """Error handler for API responses."""

    ERROR_CODES = {
        "VALIDATION_ERROR": 400,
        "INVALID_WEBHOOK": 400,
        "INVALID_STATE": 400,
        "FORBIDDEN": 403,
        "NOT_FOUND": 404,
        "SOLD_OUT": 409,
        "PRICE_MISMATCH": 409,
        "DUPLICATE_REQUEST": 409,
        "PAYMENT_PROVIDER_ERROR": 502,
        "CONCURRENT_UPDATE": 500,
        "INTERNAL_ERROR": 500,
    }

    @classmethod
    def status_for(cls, error: Exception) -> int:
        if isinstance(error, ShopError):
            return cls.ERROR_CODES.get(error.code, 400)
        return 500

    @classmethod
    def error_response(cls, code: str, message: str, status: int | None = None) -> JsonResponse:
        return JsonResponse(
            {
                "error": {
                    "code": code,
                    "message": message,
                }
            },
            status=status or cls.ERROR_CODES.get(code, 400),
        )

    @classmethod
    def handle_error(cls, error: Exception) -> JsonResponse:
        """Handle error and return JSON response."""
        if isinstance(error, ShopError):
            status_code = cls.status_for(error)
            if status_code >= 500:
                logger.error(
                    "service_error",
                    extra={"error": error.message, "status": status_code},
                    exc_info=error,
                )
            return cls.error_response(error.code, error.message, status_code)

        # Log unexpected errors
        logger.error(
            "unexpected_error",
            extra={
                "error": f"{type(error).__name__}: {error}",
            },
            exc_info=error,
        )
        return cls.error_response("INTERNAL_ERROR", "An internal error occurred", 500)

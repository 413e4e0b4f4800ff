"""
Custom exceptions and handlers for consistent API error responses.

Integration failures (missing configuration, missing credentials, vendor
errors and vendor timeouts) share the same base as the API errors so that
anything escaping a route is rendered with the same structure.
"""

from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse
from typing import Any, Dict, Optional
import logging

logger = logging.getLogger(__name__)


class APIError(HTTPException):
    """Base API error with consistent structure"""

    def __init__(
        self,
        status_code: int,
        detail: str,
        error_code: Optional[str] = None,
        headers: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        self.error_code = error_code

    def __str__(self) -> str:
        return str(self.detail)


class NotFoundError(APIError):
    """Resource not found error"""

    def __init__(
        self, detail: str = "Resource not found", error_code: str = "NOT_FOUND"
    ):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND, detail=detail, error_code=error_code
        )


class ValidationError(APIError):
    """Validation error"""

    def __init__(
        self, detail: str = "Validation failed", error_code: str = "VALIDATION_ERROR"
    ):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
            error_code=error_code,
        )


class ConfigError(APIError):
    """Integration is not connected or is missing vendor configuration.

    Not retryable; the tenant has to reconnect the integration.
    """

    def __init__(
        self,
        detail: str = "Integration is not configured",
        error_code: str = "INTEGRATION_NOT_CONFIGURED",
    ):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT, detail=detail, error_code=error_code
        )


class AuthError(APIError):
    """No credential is available to obtain a vendor access token"""

    def __init__(
        self,
        detail: str = "No refresh credential available",
        error_code: str = "VENDOR_AUTH_UNAVAILABLE",
    ):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            error_code=error_code,
        )


class VendorError(APIError):
    """Non-2xx response from the vendor API.

    Carries the vendor's status code and response body for diagnostics.
    """

    def __init__(
        self,
        detail: str = "Vendor API error",
        vendor_status_code: Optional[int] = None,
        body: Any = None,
        error_code: str = "VENDOR_ERROR",
    ):
        super().__init__(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=detail,
            error_code=error_code,
        )
        self.vendor_status_code = vendor_status_code
        self.body = body


class VendorTimeoutError(APIError):
    """Vendor call exceeded its deadline. Never retried automatically."""

    def __init__(
        self,
        detail: str = "Vendor API request timed out",
        error_code: str = "VENDOR_TIMEOUT",
    ):
        super().__init__(
            status_code=status.HTTP_504_GATEWAY_TIMEOUT,
            detail=detail,
            error_code=error_code,
        )


async def handle_value_error(request: Request, exc: ValueError) -> JSONResponse:
    """Convert ValueError to consistent API response"""
    logger.warning(f"ValueError at {request.url.path}: {str(exc)}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "detail": str(exc),
            "error_code": "VALIDATION_ERROR",
            "path": str(request.url.path),
        },
    )


async def handle_api_error(request: Request, exc: APIError) -> JSONResponse:
    """Handle custom API errors"""
    content = {
        "detail": exc.detail,
        "error_code": exc.error_code,
        "path": str(request.url.path),
    }
    if isinstance(exc, VendorError) and exc.vendor_status_code is not None:
        content["vendor_status_code"] = exc.vendor_status_code
    return JSONResponse(
        status_code=exc.status_code,
        content=content,
        headers=exc.headers,
    )


def register_exception_handlers(app):
    """Register all exception handlers with the FastAPI app"""
    app.add_exception_handler(ValueError, handle_value_error)
    app.add_exception_handler(APIError, handle_api_error)

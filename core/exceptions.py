"""
Global exception handlers

Endpoint specific failure bodies are rendered by the routes themselves; these
handlers cover everything that escapes a route (unknown paths, malformed
request bodies, stray business errors, crashes).
"""
import uuid

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from fastapi.responses import JSONResponse
from starlette import status as http_status

from shared.codes import BusinessCode
from shared.codes.payment_codes import PaymentCode
from core.logging_config import get_logger
from domain.common.exceptions import BusinessException


def business_code_to_http_status(code: int) -> int:
    """Map a business code to an HTTP status (default 400)."""
    mapping = {
        BusinessCode.PARAM_VALIDATION_ERROR: http_status.HTTP_400_BAD_REQUEST,

        BusinessCode.NOT_FOUND: http_status.HTTP_404_NOT_FOUND,
        BusinessCode.ORDER_NOT_FOUND: http_status.HTTP_404_NOT_FOUND,
        BusinessCode.USER_NOT_FOUND: http_status.HTTP_404_NOT_FOUND,

        BusinessCode.TRANSACTION_CONFLICT: http_status.HTTP_500_INTERNAL_SERVER_ERROR,

        # Provider failures are never blamed on the caller
        PaymentCode.PROVIDER_ERROR: http_status.HTTP_500_INTERNAL_SERVER_ERROR,
        PaymentCode.AUTH_FAILED: http_status.HTTP_500_INTERNAL_SERVER_ERROR,
        PaymentCode.SUBMISSION_FAILED: http_status.HTTP_500_INTERNAL_SERVER_ERROR,
        PaymentCode.STATUS_QUERY_FAILED: http_status.HTTP_500_INTERNAL_SERVER_ERROR,
    }
    return mapping.get(code, http_status.HTTP_400_BAD_REQUEST)


def _request_id(request: Request) -> str:
    return getattr(getattr(request, "state", object()), "request_id", None) or str(uuid.uuid4())


def register_exception_handlers(app: FastAPI):
    """
    Register global exception handlers

    Args:
        app: FastAPI application
    """

    logger = get_logger(__name__)

    @app.exception_handler(BusinessException)
    async def business_exception_handler(request: Request, exc: BusinessException):
        status_code = business_code_to_http_status(exc.code)
        log = logger.error if status_code >= 500 else logger.warning
        log(
            "business_exception",
            request_id=_request_id(request),
            code=int(exc.code),
            error_type=exc.error_type,
            error=exc.message,
            details=exc.details,
        )
        # Provider detail stays in the log; the caller gets a generic message
        message = exc.message if status_code < 500 else "Internal Server Error"
        return JSONResponse(status_code=status_code, content={"message": message})

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        first_error = errors[0] if errors else {}
        field = ".".join(str(loc) for loc in first_error.get("loc", [])[1:])
        logger.warning(
            "request_validation_failed",
            request_id=_request_id(request),
            field=field,
            reason=first_error.get("msg", "unknown"),
        )
        return JSONResponse(
            status_code=http_status.HTTP_400_BAD_REQUEST,
            content={"success": False, "message": "Invalid request payload."},
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        # Routes match on method and path together: a wrong method is an unknown route
        if exc.status_code in (http_status.HTTP_404_NOT_FOUND, http_status.HTTP_405_METHOD_NOT_ALLOWED):
            return JSONResponse(
                status_code=http_status.HTTP_404_NOT_FOUND,
                content={"message": "Not Found"},
            )
        return JSONResponse(
            status_code=exc.status_code,
            content={"message": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(
            "unhandled_exception",
            request_id=_request_id(request),
            error=str(exc),
            exc_info=True,
        )
        return JSONResponse(
            status_code=http_status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"message": "Internal Server Error"},
        )

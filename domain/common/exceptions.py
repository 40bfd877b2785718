"""Domain business exceptions shared by the domain, application and infrastructure layers.

The core layer only maps these to HTTP responses; the domain layer must not
depend on core.
"""
from __future__ import annotations

from typing import Optional
from shared.codes import BusinessCode
from shared.codes.payment_codes import PaymentCode


class BusinessException(Exception):
    """Base business exception"""

    def __init__(
        self,
        code: int,
        message: str,
        error_type: str = "BusinessError",
        details: Optional[dict] = None,
        field: Optional[str] = None,
    ) -> None:
        self.code = code
        self.message = message
        self.error_type = error_type
        self.details = details
        self.field = field
        super().__init__(self.message)


class PaymentValidationError(BusinessException):
    """Inbound request is missing or carries malformed required input."""

    def __init__(self, message: str, *, field: str | None = None, details: dict | None = None):
        super().__init__(
            code=BusinessCode.PARAM_VALIDATION_ERROR,
            message=message,
            error_type="ValidationError",
            details=details,
            field=field,
        )


class PaymentGatewayError(BusinessException):
    """Base class for failures talking to the payment provider.

    ``details`` keeps the raw provider payload for server-side logs only.
    """

    error_code: int = PaymentCode.PROVIDER_ERROR
    error_name: str = "PaymentGatewayError"

    def __init__(self, message: str, *, provider: str, details: Optional[dict] = None):
        full_details = {"provider": provider}
        if details:
            full_details.update(details)
        super().__init__(
            code=self.error_code,
            message=message,
            error_type=self.error_name,
            details=full_details,
        )
        self.provider = provider


class AuthError(PaymentGatewayError):
    error_code = PaymentCode.AUTH_FAILED
    error_name = "AuthError"


class SubmissionError(PaymentGatewayError):
    error_code = PaymentCode.SUBMISSION_FAILED
    error_name = "SubmissionError"


class StatusQueryError(PaymentGatewayError):
    error_code = PaymentCode.STATUS_QUERY_FAILED
    error_name = "StatusQueryError"


class NotFoundError(BusinessException):
    """An Order or User document expected during settlement is missing."""

    def __init__(self, message: str, *, error_type: str = "NotFound", code: int = BusinessCode.NOT_FOUND,
                 details: Optional[dict] = None):
        super().__init__(code=code, message=message, error_type=error_type, details=details)


class OrderNotFoundError(NotFoundError):
    def __init__(self, order_id: str):
        super().__init__(
            "Order not found",
            error_type="OrderNotFound",
            code=BusinessCode.ORDER_NOT_FOUND,
            details={"order_id": order_id},
        )


class UserNotFoundError(NotFoundError):
    def __init__(self, user_id: Optional[str], *, order_id: Optional[str] = None):
        details = {"user_id": user_id}
        if order_id is not None:
            details["order_id"] = order_id
        super().__init__(
            "User not found",
            error_type="UserNotFound",
            code=BusinessCode.USER_NOT_FOUND,
            details=details,
        )


class TransactionConflictError(BusinessException):
    """The document store gave up committing after repeated contention."""

    def __init__(self, order_id: str, *, reason: Optional[str] = None):
        details = {"order_id": order_id}
        if reason:
            details["reason"] = reason
        super().__init__(
            code=BusinessCode.TRANSACTION_CONFLICT,
            message="Transaction aborted due to contention",
            error_type="TransactionConflict",
            details=details,
        )

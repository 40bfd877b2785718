"""
Application service orchestrating the Pesapal checkout use-cases.

This class depends only on the PaymentGateway port, the OrderLedger interface
and DTOs. Implementations are built by the composition root (main.py lifespan)
and injected, keeping dependencies one-way.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import ValidationError

from application.dtos.payments import (
    BillingAddress,
    CheckoutOrder,
    OrderSubmissionRequest,
    OrderSubmissionResult,
    PesapalOrderRequest,
    TransactionState,
    TransactionStatus,
    TransactionStatusView,
)
from application.ports.payment_gateway import PaymentGateway
from domain.common.exceptions import (
    OrderNotFoundError,
    PaymentValidationError,
    UserNotFoundError,
)
from domain.order.entity import PaymentConfirmation
from domain.order.repository import OrderLedger, SettlementOutcome, SettlementResult
from shared.codes.payment_codes import PESAPAL_STATUS_TO_INTERNAL, PesapalStatusCode
from core.logging_config import get_logger


logger = get_logger(__name__)

ORDER_DESCRIPTION_PREFIX_LEN = 8


def get_status_enum(status_code: Any) -> TransactionState:
    """Map a Pesapal ``status_code`` to the client facing status."""
    if isinstance(status_code, bool) or not isinstance(status_code, int):
        return TransactionState.INVALID
    try:
        code = PesapalStatusCode(status_code)
    except ValueError:
        return TransactionState.INVALID
    return TransactionState(PESAPAL_STATUS_TO_INTERNAL[code])


def build_order_description(order_id: str) -> str:
    return f"Payment for Order #{order_id[:ORDER_DESCRIPTION_PREFIX_LEN]}"


class PaymentService:
    def __init__(
        self,
        gateway: PaymentGateway,
        ledger: OrderLedger,
        *,
        currency: str,
        redirect_url: str,
        notification_url: str,
    ) -> None:
        self.gateway = gateway
        self.ledger = ledger
        self.currency = currency
        self.redirect_url = redirect_url
        self.notification_url = notification_url

    # ---- order submission ----

    def build_order_request(self, req: OrderSubmissionRequest) -> PesapalOrderRequest:
        """Validate the storefront payload and turn it into a Pesapal order.

        Raises PaymentValidationError before anything leaves the process.
        """
        if not req.order or not req.order_id:
            raise PaymentValidationError("Missing order data.", field="order" if not req.order else "orderId")
        try:
            order = CheckoutOrder.model_validate(req.order)
        except ValidationError as exc:
            first = exc.errors()[0] if exc.errors() else {}
            raise PaymentValidationError(
                "Invalid order data.",
                field=".".join(str(loc) for loc in first.get("loc", ())) or "order",
                details={"reason": first.get("msg")},
            ) from exc

        return PesapalOrderRequest(
            id=req.order_id,
            currency=self.currency,
            amount=order.total,
            description=build_order_description(req.order_id),
            callback_url=self.redirect_url,
            notification_id=self.notification_url,
            billing_address=BillingAddress.from_contact(order.user),
        )

    async def submit_order(self, req: OrderSubmissionRequest) -> OrderSubmissionResult:
        order_request = self.build_order_request(req)
        logger.info("payment_submit_request", order_id=order_request.id, amount=order_request.amount)
        submitted = await self.gateway.submit_order(order_request)
        logger.info(
            "payment_submit_response",
            order_id=order_request.id,
            order_tracking_id=submitted.order_tracking_id,
        )
        return OrderSubmissionResult(success=True, payment_url=submitted.redirect_url)

    # ---- payment notification (IPN) ----

    async def verify_transaction(self, tracking_id: str) -> TransactionStatus:
        """Fetch the authoritative status of a transaction from the provider."""
        return await self.gateway.get_transaction_status(tracking_id)

    async def handle_notification(self, tracking_id: Optional[str], merchant_reference: Optional[str]) -> SettlementResult | None:
        """Apply a payment notification to the order it references.

        Authoritative re-query: the notification only says *which* transaction
        to look at. Its outcome is always taken from a fresh provider status
        lookup, never from anything the caller sent.

        Returns the settlement result for a completed payment, or None when
        the order was marked as failed.
        """
        if not tracking_id or not merchant_reference:
            raise PaymentValidationError(
                "Invalid IPN request.",
                field="OrderTrackingId" if not tracking_id else "OrderMerchantReference",
            )

        status = await self.verify_transaction(tracking_id)
        logger.info(
            "payment_notification_verified",
            order_id=merchant_reference,
            tracking_id=tracking_id,
            status_code=status.status_code,
        )

        if status.status_code != PesapalStatusCode.COMPLETED:
            await self.ledger.mark_payment_failed(merchant_reference)
            logger.info("payment_marked_failed", order_id=merchant_reference, status_code=status.status_code)
            return None

        confirmation = PaymentConfirmation(
            tracking_id=tracking_id,
            payment_method=status.payment_method,
            confirmed_on=datetime.now(timezone.utc),
        )
        result = await self.ledger.settle_payment(merchant_reference, confirmation)

        if result.outcome is SettlementOutcome.ORDER_NOT_FOUND:
            raise OrderNotFoundError(merchant_reference)
        if result.outcome is SettlementOutcome.USER_NOT_FOUND:
            raise UserNotFoundError(result.user_id, order_id=merchant_reference)
        if result.outcome is SettlementOutcome.ALREADY_PROCESSED:
            logger.info("payment_already_processed", order_id=merchant_reference, tracking_id=tracking_id)
        else:
            logger.info(
                "payment_settled",
                order_id=merchant_reference,
                user_id=result.user_id,
                points_earned=result.points_earned,
                new_points=result.new_points,
            )
        return result

    # ---- status polling ----

    async def query_status(self, tracking_id: Optional[str]) -> TransactionStatusView:
        if not tracking_id:
            raise PaymentValidationError("Missing tracking ID.", field="pesapalTrackingId")
        status = await self.verify_transaction(tracking_id)
        return TransactionStatusView(
            status=get_status_enum(status.status_code),
            payment_method=status.payment_method,
            description=status.description,
        )

"""
Order ledger backed by Cloud Firestore (async client from firebase-admin).

Settlement runs inside ``firestore.async_transactional``: Firestore retries the
body on contention, so every read happens through the transaction and all
writes are buffered until commit.
"""
from __future__ import annotations

from typing import Callable, Optional

from google.api_core import exceptions as google_exceptions
from google.cloud import firestore

from domain.common.exceptions import OrderNotFoundError, TransactionConflictError
from domain.order.entity import LoyaltyAccount, Order, OrderStatus, PaymentConfirmation
from domain.order.repository import OrderLedger, SettlementOutcome, SettlementResult
from domain.order.service import plan_settlement
from core.logging_config import get_logger


logger = get_logger(__name__)


class FirestoreOrderLedger(OrderLedger):
    """OrderLedger over the ``orders`` and ``users`` collections"""

    def __init__(
        self,
        client: firestore.AsyncClient,
        *,
        orders_collection: str = "orders",
        users_collection: str = "users",
        on_close: Optional[Callable[[], None]] = None,
    ):
        self.client = client
        self.orders_collection = orders_collection
        self.users_collection = users_collection
        self._on_close = on_close

    def _order_ref(self, order_id: str):
        return self.client.collection(self.orders_collection).document(order_id)

    def _user_ref(self, user_id: str):
        return self.client.collection(self.users_collection).document(user_id)

    async def settle_payment(self, order_id: str, confirmation: PaymentConfirmation) -> SettlementResult:
        transactional = firestore.async_transactional(self._settle_in_transaction)
        try:
            result = await transactional(self.client.transaction(), order_id, confirmation)
        except google_exceptions.Aborted as exc:
            raise TransactionConflictError(order_id, reason=str(exc)) from exc
        except ValueError as exc:
            # Raised by the transactional wrapper once its retry attempts run out
            if "attempts" not in str(exc):
                raise
            raise TransactionConflictError(order_id, reason=str(exc)) from exc
        logger.info(
            "order_settlement_finished",
            order_id=order_id,
            outcome=result.outcome.value,
            user_id=result.user_id,
        )
        return result

    async def _settle_in_transaction(
        self,
        transaction,
        order_id: str,
        confirmation: PaymentConfirmation,
    ) -> SettlementResult:
        order_ref = self._order_ref(order_id)
        order_snapshot = await order_ref.get(transaction=transaction)
        if not order_snapshot.exists:
            return SettlementResult(SettlementOutcome.ORDER_NOT_FOUND, order_id)

        order = Order.from_document(order_id, order_snapshot.to_dict() or {})
        if order.is_processed:
            return SettlementResult(SettlementOutcome.ALREADY_PROCESSED, order_id, user_id=order.user_id)

        if not order.user_id:
            return SettlementResult(SettlementOutcome.USER_NOT_FOUND, order_id)
        user_ref = self._user_ref(order.user_id)
        user_snapshot = await user_ref.get(transaction=transaction)
        if not user_snapshot.exists:
            return SettlementResult(SettlementOutcome.USER_NOT_FOUND, order_id, user_id=order.user_id)

        account = LoyaltyAccount.from_document(order.user_id, user_snapshot.to_dict() or {})
        plan = plan_settlement(order, account, confirmation)
        transaction.update(order_ref, plan.order_updates)
        transaction.update(user_ref, plan.user_updates)
        return SettlementResult(
            SettlementOutcome.APPLIED,
            order_id,
            user_id=order.user_id,
            points_earned=plan.points_earned,
            new_points=plan.new_points,
        )

    async def mark_payment_failed(self, order_id: str) -> None:
        try:
            await self._order_ref(order_id).update({"status": OrderStatus.PAYMENT_FAILED.value})
        except google_exceptions.NotFound as exc:
            raise OrderNotFoundError(order_id) from exc
        logger.info("order_marked_payment_failed", order_id=order_id)

    async def aclose(self) -> None:
        if self._on_close is not None:
            self._on_close()
            self._on_close = None

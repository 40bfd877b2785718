"""In-memory implementation of OrderLedger.

Single-process only. Useful for local dev and tests.
"""
from __future__ import annotations

import asyncio
import copy
from typing import Any, Optional

from domain.common.exceptions import OrderNotFoundError
from domain.order.entity import LoyaltyAccount, Order, OrderStatus, PaymentConfirmation
from domain.order.repository import OrderLedger, SettlementOutcome, SettlementResult
from domain.order.service import plan_settlement


class InMemoryOrderLedger(OrderLedger):
    def __init__(
        self,
        orders: Optional[dict[str, dict[str, Any]]] = None,
        users: Optional[dict[str, dict[str, Any]]] = None,
    ) -> None:
        self._orders: dict[str, dict[str, Any]] = copy.deepcopy(orders or {})
        self._users: dict[str, dict[str, Any]] = copy.deepcopy(users or {})
        self._lock = asyncio.Lock()

    def put_order(self, order_id: str, data: dict[str, Any]) -> None:
        self._orders[order_id] = copy.deepcopy(data)

    def put_user(self, user_id: str, data: dict[str, Any]) -> None:
        self._users[user_id] = copy.deepcopy(data)

    def get_order(self, order_id: str) -> Optional[dict[str, Any]]:
        doc = self._orders.get(order_id)
        return copy.deepcopy(doc) if doc is not None else None

    def get_user(self, user_id: str) -> Optional[dict[str, Any]]:
        doc = self._users.get(user_id)
        return copy.deepcopy(doc) if doc is not None else None

    async def settle_payment(self, order_id: str, confirmation: PaymentConfirmation) -> SettlementResult:  # type: ignore[override]
        # The lock stands in for the store transaction: check and write cannot interleave
        async with self._lock:
            order_doc = self._orders.get(order_id)
            if order_doc is None:
                return SettlementResult(SettlementOutcome.ORDER_NOT_FOUND, order_id)
            order = Order.from_document(order_id, order_doc)
            if order.is_processed:
                return SettlementResult(SettlementOutcome.ALREADY_PROCESSED, order_id, user_id=order.user_id)
            user_doc = self._users.get(order.user_id) if order.user_id else None
            if user_doc is None:
                return SettlementResult(SettlementOutcome.USER_NOT_FOUND, order_id, user_id=order.user_id)

            plan = plan_settlement(order, LoyaltyAccount.from_document(order.user_id, user_doc), confirmation)
            order_doc.update(copy.deepcopy(plan.order_updates))
            user_doc.update(plan.user_updates)
            return SettlementResult(
                SettlementOutcome.APPLIED,
                order_id,
                user_id=order.user_id,
                points_earned=plan.points_earned,
                new_points=plan.new_points,
            )

    async def mark_payment_failed(self, order_id: str) -> None:  # type: ignore[override]
        async with self._lock:
            order_doc = self._orders.get(order_id)
            if order_doc is None:
                raise OrderNotFoundError(order_id)
            order_doc["status"] = OrderStatus.PAYMENT_FAILED.value

    async def aclose(self) -> None:  # type: ignore[override]
        async with self._lock:
            self._orders.clear()
            self._users.clear()

"""
Order domain service - points arithmetic for a confirmed payment.

Pure functions only; the ledger implementations run them inside their
own transactions.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

from .entity import LoyaltyAccount, Order, OrderStatus, PaymentConfirmation


POINTS_PER_CURRENCY_UNIT = 100


def calculate_points_earned(subtotal: float) -> int:
    """One loyalty point per full 100 of subtotal."""
    return math.floor(subtotal / POINTS_PER_CURRENCY_UNIT)


@dataclass(frozen=True)
class Settlement:
    """Writes that settle one paid order."""

    points_earned: int
    new_points: float
    order_updates: dict[str, Any]
    user_updates: dict[str, Any]


def plan_settlement(order: Order, account: LoyaltyAccount, confirmation: PaymentConfirmation) -> Settlement:
    points_earned = calculate_points_earned(order.subtotal)
    new_points = (account.points or 0) - order.points_redeemed + points_earned
    return Settlement(
        points_earned=points_earned,
        new_points=new_points,
        order_updates={
            "status": OrderStatus.PROCESSING.value,
            "pointsEarned": points_earned,
            "paymentDetails": confirmation.to_document(),
        },
        user_updates={"points": new_points},
    )

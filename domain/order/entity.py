"""
Order domain entities - the externally owned Order and User documents
as seen by the payment flow.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional


class OrderStatus(str, Enum):
    """Order status values as stored on the order document"""
    PENDING = "Pending"
    PROCESSING = "Processing"            # paid
    PAYMENT_FAILED = "Payment Failed"


def _ensure_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


@dataclass
class PaymentConfirmation:
    """Provider confirmation attached to an order once it is paid."""

    tracking_id: str
    payment_method: Optional[str] = None
    confirmed_on: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self):
        self.confirmed_on = _ensure_utc(self.confirmed_on)

    def to_document(self) -> dict[str, Any]:
        return {
            "trackingId": self.tracking_id,
            "method": self.payment_method,
            "confirmedOn": self.confirmed_on,
        }


@dataclass
class Order:
    """
    Order document view

    Business rules:
    1. An order moves to Processing at most once
    2. pointsEarned and paymentDetails are only written together with that move
    """

    id: str
    status: str
    subtotal: float = 0
    points_redeemed: float = 0
    user_id: Optional[str] = None
    points_earned: Optional[int] = None
    payment_details: Optional[dict[str, Any]] = None

    @classmethod
    def from_document(cls, order_id: str, data: dict[str, Any]) -> "Order":
        user = data.get("user")
        # Either an embedded {"id": ...} map or a DocumentReference to the user
        user_id = user.get("id") if isinstance(user, dict) else getattr(user, "id", None)
        return cls(
            id=order_id,
            status=str(data.get("status") or OrderStatus.PENDING.value),
            subtotal=data.get("subtotal") or 0,
            points_redeemed=data.get("pointsRedeemed") or 0,
            user_id=user_id,
            points_earned=data.get("pointsEarned"),
            payment_details=data.get("paymentDetails"),
        )

    @property
    def is_processed(self) -> bool:
        return self.status == OrderStatus.PROCESSING.value


@dataclass
class LoyaltyAccount:
    """User document view limited to the loyalty balance."""

    user_id: str
    points: float = 0

    @classmethod
    def from_document(cls, user_id: str, data: dict[str, Any]) -> "LoyaltyAccount":
        return cls(user_id=user_id, points=data.get("points") or 0)

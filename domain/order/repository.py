"""
Order ledger interface - the document store operations the payment flow needs
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .entity import PaymentConfirmation


class SettlementOutcome(str, Enum):
    APPLIED = "applied"
    ALREADY_PROCESSED = "already_processed"
    ORDER_NOT_FOUND = "order_not_found"
    USER_NOT_FOUND = "user_not_found"


@dataclass(frozen=True)
class SettlementResult:
    outcome: SettlementOutcome
    order_id: str
    user_id: Optional[str] = None
    points_earned: Optional[int] = None
    new_points: Optional[float] = None

    @property
    def applied(self) -> bool:
        return self.outcome is SettlementOutcome.APPLIED


class OrderLedger(ABC):
    """Order/User document access, only what can be done, not how"""

    @abstractmethod
    async def settle_payment(self, order_id: str, confirmation: PaymentConfirmation) -> SettlementResult:
        """Mark the order paid and move the owner's points in one atomic transaction.

        The order status is checked inside the same transaction, so a second
        settlement of the same order reports ALREADY_PROCESSED and writes nothing.
        Missing documents are reported as outcomes, never created.
        """

    @abstractmethod
    async def mark_payment_failed(self, order_id: str) -> None:
        """Set the order status to Payment Failed (single write, no points change)."""

    async def aclose(self) -> None:
        """Release store resources."""
        return None

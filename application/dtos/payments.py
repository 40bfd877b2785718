"""
Payment DTOs (Pydantic v2) used at application boundaries.

Field names follow the wire formats: camelCase towards the storefront,
snake_case towards Pesapal.
"""
from __future__ import annotations

from enum import Enum
from typing import Any, Optional
from pydantic import BaseModel, Field, ConfigDict, field_validator


class TransactionState(str, Enum):
    """Client facing payment status returned by the polling endpoint."""
    COMPLETED = "COMPLETED"
    PENDING = "PENDING"
    FAILED = "FAILED"
    INVALID = "INVALID"


# ---- Storefront -> backend ----

class BillingContact(BaseModel):
    email: str
    phone: str
    name: str

    model_config = ConfigDict(extra="allow")

    @field_validator("phone", mode="before")
    @classmethod
    def _phone_as_text(cls, v: Any) -> Any:
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v

    @field_validator("name")
    @classmethod
    def _non_blank_name(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("name must not be blank")
        return v

    def split_name(self) -> tuple[str, str]:
        """Split at the first space; a single word is used for both parts."""
        parts = self.name.split(" ")
        first = parts[0]
        last = " ".join(parts[1:]) or first
        return first, last


class CheckoutOrder(BaseModel):
    total: float = Field(ge=0)
    user: BillingContact

    model_config = ConfigDict(extra="allow")


class OrderSubmissionRequest(BaseModel):
    order: Optional[dict[str, Any]] = None
    order_id: Optional[str] = Field(default=None, alias="orderId")

    model_config = ConfigDict(populate_by_name=True, extra="allow")


class OrderSubmissionResult(BaseModel):
    success: bool = True
    payment_url: str = Field(serialization_alias="paymentUrl")


class TransactionStatusView(BaseModel):
    status: TransactionState
    payment_method: Optional[str] = None
    description: Optional[str] = None


# ---- Backend -> Pesapal ----

class BillingAddress(BaseModel):
    email_address: str
    phone_number: str
    first_name: str
    last_name: str

    @classmethod
    def from_contact(cls, contact: BillingContact) -> "BillingAddress":
        first, last = contact.split_name()
        return cls(
            email_address=contact.email,
            phone_number=contact.phone,
            first_name=first,
            last_name=last,
        )


class PesapalOrderRequest(BaseModel):
    id: str
    currency: str
    amount: float
    description: str
    callback_url: str
    notification_id: str
    billing_address: BillingAddress


class SubmittedOrder(BaseModel):
    redirect_url: str
    order_tracking_id: Optional[str] = None
    merchant_reference: Optional[str] = None

    model_config = ConfigDict(extra="ignore")


class TransactionStatus(BaseModel):
    """Raw GetTransactionStatus payload (only the fields this service reads are typed)."""
    status_code: Optional[int] = None
    payment_method: Optional[str] = None
    description: Optional[str] = None
    payment_status_description: Optional[str] = None
    confirmation_code: Optional[str] = None
    merchant_reference: Optional[str] = None
    amount: Optional[float] = None
    currency: Optional[str] = None

    model_config = ConfigDict(extra="allow")

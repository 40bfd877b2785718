"""
Payment gateway port (application/ports) exposing a replaceable protocol.

Application depends on this Protocol; infrastructure implements adapters.
"""
from __future__ import annotations

from typing import Protocol, runtime_checkable

from application.dtos.payments import (
    PesapalOrderRequest,
    SubmittedOrder,
    TransactionStatus,
)


@runtime_checkable
class PaymentGateway(Protocol):
    """Gateway protocol for the hosted-checkout provider.

    Implementations are stateless between calls: each call authenticates
    afresh. Failures raise AuthError, SubmissionError or StatusQueryError.
    """

    provider: str

    async def authenticate(self) -> str: ...

    async def submit_order(self, req: PesapalOrderRequest) -> SubmittedOrder: ...

    async def get_transaction_status(self, tracking_id: str) -> TransactionStatus: ...

    async def aclose(self) -> None: ...

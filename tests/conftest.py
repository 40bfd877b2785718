"""Pytest bootstrap configuration.

Ensure mandatory environment variables are set before test collection
and module imports that depend on application settings.
"""
import os

os.environ.setdefault("PESAPAL__CONSUMER_KEY", "test-consumer-key")
os.environ.setdefault("PESAPAL__CONSUMER_SECRET", "test-consumer-secret")
os.environ.setdefault("PESAPAL__API_URL", "https://pesapal.test/api")
os.environ.setdefault("DOCUMENT_STORE__BACKEND", "memory")
os.environ.setdefault("APP_BASE_URL", "https://shop.example.com")
os.environ.setdefault("PUBLIC_API_URL", "https://api.example.com/api")

import pytest

from application.dtos.payments import SubmittedOrder, TransactionStatus
from domain.common.exceptions import StatusQueryError, SubmissionError
from infrastructure.repositories.inmemory_order_ledger import InMemoryOrderLedger


class FakeGateway:
    """Records every outbound call instead of talking to Pesapal."""

    provider = "fake"

    def __init__(self) -> None:
        self.submitted = []
        self.status_queries = []
        self.status = TransactionStatus(status_code=1, payment_method="M-Pesa", description="Payment completed")
        self.submit_error: Exception | None = None
        self.status_error: Exception | None = None
        self.redirect_url = "https://pay.pesapal.test/iframe?OrderTrackingId=trk-1"

    @property
    def call_count(self) -> int:
        return len(self.submitted) + len(self.status_queries)

    async def authenticate(self) -> str:
        return "fake-token"

    async def submit_order(self, req):
        self.submitted.append(req)
        if self.submit_error:
            raise self.submit_error
        return SubmittedOrder(redirect_url=self.redirect_url, order_tracking_id="trk-1", merchant_reference=req.id)

    async def get_transaction_status(self, tracking_id: str):
        self.status_queries.append(tracking_id)
        if self.status_error:
            raise self.status_error
        return self.status

    async def aclose(self) -> None:
        return None


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def ledger() -> InMemoryOrderLedger:
    store = InMemoryOrderLedger()
    store.put_order(
        "order-1",
        {"status": "Pending", "subtotal": 250, "pointsRedeemed": 10, "user": {"id": "user-1"}},
    )
    store.put_user("user-1", {"points": 40})
    return store


@pytest.fixture
def submission_error() -> SubmissionError:
    return SubmissionError("Invalid currency", provider="fake", details={"response": {"error": {"message": "bad"}}})


@pytest.fixture
def status_error() -> StatusQueryError:
    return StatusQueryError("Failed to query Pesapal transaction status.", provider="fake")

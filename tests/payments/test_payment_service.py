import asyncio

import pytest

from application.dtos.payments import OrderSubmissionRequest, TransactionState, TransactionStatus
from application.services.payment_service import PaymentService, get_status_enum
from domain.common.exceptions import (
    OrderNotFoundError,
    PaymentValidationError,
    SubmissionError,
    UserNotFoundError,
)
from domain.order.repository import SettlementOutcome


def _service(gateway, ledger) -> PaymentService:
    return PaymentService(
        gateway=gateway,
        ledger=ledger,
        currency="KES",
        redirect_url="https://shop.example.com/#/pesapal-callback",
        notification_url="https://api.example.com/api/pesapal/callback",
    )


def _submission(name="Jo Doe", order_id="abcdef1234"):
    return OrderSubmissionRequest(
        order={"total": 500, "user": {"email": "a@b.com", "phone": "1", "name": name}},
        orderId=order_id,
    )


@pytest.mark.asyncio
async def test_submit_order_builds_pesapal_request(gateway, ledger):
    result = await _service(gateway, ledger).submit_order(_submission())

    assert result.success is True
    assert result.payment_url == gateway.redirect_url
    sent = gateway.submitted[0]
    assert sent.id == "abcdef1234"
    assert sent.description == "Payment for Order #abcdef12"
    assert sent.currency == "KES"
    assert sent.amount == 500
    assert sent.billing_address.first_name == "Jo"
    assert sent.billing_address.last_name == "Doe"
    assert sent.billing_address.email_address == "a@b.com"
    assert sent.callback_url == "https://shop.example.com/#/pesapal-callback"
    assert sent.notification_id == "https://api.example.com/api/pesapal/callback"


@pytest.mark.parametrize(
    "name,first,last",
    [
        ("Cher", "Cher", "Cher"),
        ("Mary Ann Smith", "Mary", "Ann Smith"),
        ("Jo Doe", "Jo", "Doe"),
    ],
)
def test_billing_name_split(gateway, ledger, name, first, last):
    req = _service(gateway, ledger).build_order_request(_submission(name=name))
    assert (req.billing_address.first_name, req.billing_address.last_name) == (first, last)


def test_short_order_id_description(gateway, ledger):
    req = _service(gateway, ledger).build_order_request(_submission(order_id="abc"))
    assert req.description == "Payment for Order #abc"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload",
    [
        OrderSubmissionRequest(),
        OrderSubmissionRequest(orderId="abcdef1234"),
        OrderSubmissionRequest(order={"total": 500, "user": {"email": "a@b.com", "phone": "1", "name": "Jo"}}),
        OrderSubmissionRequest(order={}, orderId="abcdef1234"),
        OrderSubmissionRequest(order={"total": 500}, orderId="abcdef1234"),
        OrderSubmissionRequest(order={"total": 500, "user": {"email": "a@b.com", "phone": "1", "name": "Jo"}}, orderId=""),
    ],
)
async def test_invalid_submission_never_reaches_gateway(gateway, ledger, payload):
    with pytest.raises(PaymentValidationError):
        await _service(gateway, ledger).submit_order(payload)
    assert gateway.call_count == 0


@pytest.mark.asyncio
async def test_submit_order_propagates_gateway_error(gateway, ledger, submission_error):
    gateway.submit_error = submission_error
    with pytest.raises(SubmissionError):
        await _service(gateway, ledger).submit_order(_submission())


@pytest.mark.asyncio
async def test_completed_notification_settles_points(gateway, ledger):
    result = await _service(gateway, ledger).handle_notification("trk-1", "order-1")

    assert result.outcome is SettlementOutcome.APPLIED
    assert result.points_earned == 2
    order = ledger.get_order("order-1")
    assert order["status"] == "Processing"
    assert order["pointsEarned"] == 2
    assert order["paymentDetails"]["trackingId"] == "trk-1"
    assert order["paymentDetails"]["method"] == "M-Pesa"
    assert order["paymentDetails"]["confirmedOn"] is not None
    assert ledger.get_user("user-1")["points"] == 32
    assert gateway.status_queries == ["trk-1"]


@pytest.mark.asyncio
async def test_duplicate_completed_notification_credits_once(gateway, ledger):
    service = _service(gateway, ledger)
    await service.handle_notification("trk-1", "order-1")
    first_details = ledger.get_order("order-1")["paymentDetails"]

    result = await service.handle_notification("trk-1", "order-1")

    assert result.outcome is SettlementOutcome.ALREADY_PROCESSED
    assert ledger.get_user("user-1")["points"] == 32
    assert ledger.get_order("order-1")["paymentDetails"] == first_details
    assert gateway.status_queries == ["trk-1", "trk-1"]


@pytest.mark.asyncio
async def test_concurrent_completed_notifications_credit_once(gateway, ledger):
    service = _service(gateway, ledger)

    results = await asyncio.gather(*(service.handle_notification("trk-1", "order-1") for _ in range(5)))

    outcomes = [r.outcome for r in results]
    assert outcomes.count(SettlementOutcome.APPLIED) == 1
    assert outcomes.count(SettlementOutcome.ALREADY_PROCESSED) == 4
    assert ledger.get_user("user-1")["points"] == 32
    assert ledger.get_order("order-1")["pointsEarned"] == 2


@pytest.mark.asyncio
@pytest.mark.parametrize("code", [0, 2, 3, None])
async def test_non_completed_status_marks_order_failed(gateway, ledger, code):
    gateway.status = TransactionStatus(status_code=code, payment_method="Visa", description="declined")

    result = await _service(gateway, ledger).handle_notification("trk-1", "order-1")

    assert result is None
    order = ledger.get_order("order-1")
    assert order["status"] == "Payment Failed"
    assert "pointsEarned" not in order
    assert ledger.get_user("user-1")["points"] == 40


@pytest.mark.asyncio
async def test_notification_uses_queried_status_only(gateway, ledger):
    # The provider says failed; nothing the caller passes can turn it into a success
    gateway.status = TransactionStatus(status_code=2)
    await _service(gateway, ledger).handle_notification("trk-1", "order-1")
    assert ledger.get_order("order-1")["status"] == "Payment Failed"


@pytest.mark.asyncio
@pytest.mark.parametrize("tracking_id,reference", [(None, "order-1"), ("trk-1", None), ("", "")])
async def test_notification_missing_parameters(gateway, ledger, tracking_id, reference):
    with pytest.raises(PaymentValidationError):
        await _service(gateway, ledger).handle_notification(tracking_id, reference)
    assert gateway.call_count == 0
    assert ledger.get_order("order-1")["status"] == "Pending"


@pytest.mark.asyncio
async def test_completed_notification_for_unknown_order(gateway, ledger):
    with pytest.raises(OrderNotFoundError):
        await _service(gateway, ledger).handle_notification("trk-1", "missing")
    assert ledger.get_order("missing") is None


@pytest.mark.asyncio
async def test_completed_notification_for_unknown_user_writes_nothing(gateway, ledger):
    ledger.put_order("order-2", {"status": "Pending", "subtotal": 900, "pointsRedeemed": 0, "user": {"id": "ghost"}})
    with pytest.raises(UserNotFoundError):
        await _service(gateway, ledger).handle_notification("trk-1", "order-2")
    assert ledger.get_order("order-2")["status"] == "Pending"


@pytest.mark.asyncio
async def test_user_without_points_starts_from_zero(gateway, ledger):
    ledger.put_order("order-3", {"status": "Pending", "subtotal": 1099, "pointsRedeemed": 0, "user": {"id": "user-3"}})
    ledger.put_user("user-3", {"name": "New"})
    await _service(gateway, ledger).handle_notification("trk-3", "order-3")
    assert ledger.get_user("user-3")["points"] == 10


@pytest.mark.parametrize(
    "code,expected",
    [
        (1, TransactionState.COMPLETED),
        (0, TransactionState.FAILED),
        (2, TransactionState.FAILED),
        (3, TransactionState.PENDING),
        (4, TransactionState.INVALID),
        (-1, TransactionState.INVALID),
        (None, TransactionState.INVALID),
        ("1", TransactionState.INVALID),
        (True, TransactionState.INVALID),
    ],
)
def test_get_status_enum(code, expected):
    assert get_status_enum(code) is expected


@pytest.mark.asyncio
async def test_query_status_maps_provider_payload(gateway, ledger):
    gateway.status = TransactionStatus(status_code=3, payment_method="Visa", description="Reversed")
    view = await _service(gateway, ledger).query_status("trk-1")
    assert view.status is TransactionState.PENDING
    assert view.payment_method == "Visa"
    assert view.description == "Reversed"


@pytest.mark.asyncio
async def test_query_status_requires_tracking_id(gateway, ledger):
    with pytest.raises(PaymentValidationError):
        await _service(gateway, ledger).query_status(None)
    assert gateway.call_count == 0

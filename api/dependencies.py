"""
API dependencies - assemble application services from the collaborators
built in the application lifespan (see main.py).
"""
from fastapi import Depends, HTTPException, Request, status

from application.ports.payment_gateway import PaymentGateway
from application.services.payment_service import PaymentService
from core.config import settings
from core.settings import payment_settings
from domain.order.repository import OrderLedger


def _from_state(request: Request, name: str):
    value = getattr(request.app.state, name, None)
    if value is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"{name} is not initialized",
        )
    return value


async def get_payment_gateway(request: Request) -> PaymentGateway:
    return _from_state(request, "payment_gateway")


async def get_order_ledger(request: Request) -> OrderLedger:
    return _from_state(request, "order_ledger")


async def get_payment_service(
    gateway: PaymentGateway = Depends(get_payment_gateway),
    ledger: OrderLedger = Depends(get_order_ledger),
) -> PaymentService:
    return PaymentService(
        gateway=gateway,
        ledger=ledger,
        currency=payment_settings.pesapal.currency,
        redirect_url=settings.payment_redirect_url,
        notification_url=settings.payment_notification_url,
    )

"""
Factory for payment gateway clients.
"""
from __future__ import annotations

from typing import Optional

from core.settings import PaymentSettings, payment_settings
from application.ports.payment_gateway import PaymentGateway


def create_payment_gateway(config: Optional[PaymentSettings] = None) -> PaymentGateway:
    """Build the Pesapal gateway; the caller owns it and must ``aclose()`` it."""
    from .pesapal_client import PesapalClient

    cfg = config or payment_settings
    return PesapalClient(cfg.pesapal, timeouts=cfg.timeouts.model_dump())


__all__ = ["create_payment_gateway"]

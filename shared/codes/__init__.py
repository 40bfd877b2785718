"""
Shared business codes used across layers (Domain/Core/API).

This package exposes BusinessCode at `shared.codes` and keeps
payment-specific codes under `shared.codes.payment_codes`.
"""
from enum import IntEnum


class BusinessCode(IntEnum):
    """Unified business status codes (single source of truth)."""

    # Parameter errors (1xxxx)
    PARAM_VALIDATION_ERROR = 10003

    # Business errors (2xxxx)
    USER_NOT_FOUND = 20001
    NOT_FOUND = 20006  # Generic resource not found
    ORDER_NOT_FOUND = 20007

    # System errors (4xxxx)
    TRANSACTION_CONFLICT = 40004


__all__ = ["BusinessCode"]

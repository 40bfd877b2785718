"""
Payment specific codes and Pesapal status mapping.
"""
from __future__ import annotations

from enum import IntEnum


class PaymentCode(IntEnum):
    # Provider/Network errors (6xxxx)
    PROVIDER_ERROR = 60000
    AUTH_FAILED = 60005
    SUBMISSION_FAILED = 60006
    STATUS_QUERY_FAILED = 60007


class PesapalStatusCode(IntEnum):
    """Numeric `status_code` values returned by GetTransactionStatus."""

    INVALID = 0
    COMPLETED = 1
    FAILED = 2
    REVERSED = 3


# Pesapal status_code -> client facing status.
# 0 and 2 both read as FAILED; 3 is reported as PENDING to polling clients.
PESAPAL_STATUS_TO_INTERNAL = {
    PesapalStatusCode.COMPLETED: "COMPLETED",
    PesapalStatusCode.INVALID: "FAILED",
    PesapalStatusCode.FAILED: "FAILED",
    PesapalStatusCode.REVERSED: "PENDING",
}

"""
Pesapal API 3.0 adapter (hosted checkout) over httpx.

Endpoints used:
- POST {api_url}/Auth/RequestToken
- POST {api_url}/Transactions/SubmitOrderRequest
- GET  {api_url}/Transactions/GetTransactionStatus?orderTrackingId=...

Tokens are never cached: every operation requests a fresh one.
"""
from __future__ import annotations

from typing import Any, Optional

import httpx
from pydantic import ValidationError

from application.dtos.payments import (
    PesapalOrderRequest,
    SubmittedOrder,
    TransactionStatus,
)
from domain.common.exceptions import AuthError, SubmissionError, StatusQueryError
from infrastructure.external.payments.base import BasePaymentClient
from core.settings import PesapalSettings
from core.logging_config import get_logger


logger = get_logger(__name__)

JSON_HEADERS = {"Content-Type": "application/json", "Accept": "application/json"}


def _error_message(payload: Any) -> Optional[str]:
    """Pull ``error.message`` out of a Pesapal error envelope."""
    if not isinstance(payload, dict):
        return None
    error = payload.get("error")
    if isinstance(error, dict):
        return error.get("message") or error.get("code") or None
    if isinstance(error, str):
        return error
    return None


class PesapalClient(BasePaymentClient):
    provider = "pesapal"

    def __init__(
        self,
        config: PesapalSettings,
        *,
        timeouts: Optional[dict[str, float]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        super().__init__(timeouts=timeouts, transport=transport)
        self.api_url = config.api_url.rstrip("/")
        self._consumer_key = config.consumer_key
        self._consumer_secret = config.consumer_secret

    async def authenticate(self) -> str:
        url = f"{self.api_url}/Auth/RequestToken"
        try:
            async with self.client() as c:
                resp = await c.post(
                    url,
                    json={"consumer_key": self._consumer_key, "consumer_secret": self._consumer_secret},
                    headers=JSON_HEADERS,
                )
        except httpx.HTTPError as exc:
            raise AuthError(
                "Could not authenticate with Pesapal.",
                provider=self.provider,
                details={"error": str(exc)},
            ) from exc

        payload = self._json_or_none(resp)
        token = payload.get("token") if isinstance(payload, dict) else None
        if resp.is_error or not token:
            raise AuthError(
                "Could not authenticate with Pesapal.",
                provider=self.provider,
                details={"status_code": resp.status_code, "error": _error_message(payload) or payload},
            )
        return token

    async def submit_order(self, req: PesapalOrderRequest) -> SubmittedOrder:
        token = await self.authenticate()
        url = f"{self.api_url}/Transactions/SubmitOrderRequest"
        try:
            async with self.client() as c:
                resp = await c.post(
                    url,
                    json=req.model_dump(mode="json"),
                    headers={**JSON_HEADERS, "Authorization": f"Bearer {token}"},
                )
        except httpx.HTTPError as exc:
            raise SubmissionError(
                "Failed to submit order to Pesapal.",
                provider=self.provider,
                details={"order_id": req.id, "error": str(exc)},
            ) from exc

        payload = self._json_or_none(resp)
        if not isinstance(payload, dict) or not payload.get("redirect_url"):
            raise SubmissionError(
                _error_message(payload) or "Failed to submit order to Pesapal.",
                provider=self.provider,
                details={"order_id": req.id, "status_code": resp.status_code, "response": payload},
            )
        self._log(
            "pesapal_order_submitted",
            order_id=req.id,
            order_tracking_id=payload.get("order_tracking_id"),
        )
        return SubmittedOrder.model_validate(payload)

    async def get_transaction_status(self, tracking_id: str) -> TransactionStatus:
        try:
            token = await self.authenticate()
        except AuthError as exc:
            raise StatusQueryError(
                "Could not authenticate before querying transaction status.",
                provider=self.provider,
                details={"tracking_id": tracking_id, **(exc.details or {})},
            ) from exc

        url = f"{self.api_url}/Transactions/GetTransactionStatus"
        try:
            async with self.client() as c:
                resp = await c.get(
                    url,
                    params={"orderTrackingId": tracking_id},
                    headers={"Accept": "application/json", "Authorization": f"Bearer {token}"},
                )
            resp.raise_for_status()
        except httpx.HTTPError as exc:
            raise StatusQueryError(
                "Failed to query Pesapal transaction status.",
                provider=self.provider,
                details={"tracking_id": tracking_id, "error": str(exc)},
            ) from exc

        payload = self._json_or_none(resp)
        if not isinstance(payload, dict):
            raise StatusQueryError(
                "Unexpected transaction status payload.",
                provider=self.provider,
                details={"tracking_id": tracking_id, "response": resp.text[:512]},
            )
        try:
            status = TransactionStatus.model_validate(payload)
        except ValidationError as exc:
            raise StatusQueryError(
                "Unexpected transaction status payload.",
                provider=self.provider,
                details={"tracking_id": tracking_id, "response": payload},
            ) from exc
        self._log(
            "pesapal_status_fetched",
            tracking_id=tracking_id,
            status_code=status.status_code,
            payment_method=status.payment_method,
        )
        return status

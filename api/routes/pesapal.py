"""
Pesapal API routes.

Keep this thin: validation and orchestration live in PaymentService; routes
only translate outcomes into the response contract of each endpoint.
"""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Body, Depends, Query, status
from fastapi.responses import JSONResponse, PlainTextResponse

from api.dependencies import get_payment_service
from application.dtos.payments import OrderSubmissionRequest, TransactionState
from application.services.payment_service import PaymentService
from domain.common.exceptions import PaymentGatewayError, PaymentValidationError
from core.logging_config import get_logger


router = APIRouter(prefix="/pesapal", tags=["Pesapal"])
logger = get_logger(__name__)

ORDER_FAILED_MESSAGE = "Server error while creating payment request."
IPN_OK_MESSAGE = "Callback received successfully."
IPN_FAILED_MESSAGE = "Error processing IPN."
STATUS_FAILED_MESSAGE = "Server error while verifying status."


@router.post("/order", summary="Start a hosted checkout payment")
async def submit_order(
    payload: Optional[OrderSubmissionRequest] = Body(default=None),
    service: PaymentService = Depends(get_payment_service),
):
    try:
        result = await service.submit_order(payload or OrderSubmissionRequest())
    except PaymentValidationError as exc:
        logger.warning("payment_submit_rejected", reason=exc.message, field=exc.field, details=exc.details)
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"success": False, "message": exc.message},
        )
    except PaymentGatewayError as exc:
        logger.error(
            "pesapal_order_submission_failed",
            error_type=exc.error_type,
            error=exc.message,
            details=exc.details,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"success": False, "message": ORDER_FAILED_MESSAGE},
        )
    except Exception as exc:
        logger.error("pesapal_order_submission_crashed", error=str(exc), exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"success": False, "message": ORDER_FAILED_MESSAGE},
        )
    return result.model_dump(mode="json", by_alias=True)


@router.get("/callback", summary="Pesapal payment notification (IPN)", response_class=PlainTextResponse)
async def payment_callback(
    tracking_id: Optional[str] = Query(default=None, alias="OrderTrackingId"),
    merchant_reference: Optional[str] = Query(default=None, alias="OrderMerchantReference"),
    service: PaymentService = Depends(get_payment_service),
):
    # Always answer the provider: 200 once handled (paid or failed), 500 only on errors
    try:
        await service.handle_notification(tracking_id, merchant_reference)
    except PaymentValidationError as exc:
        logger.warning("payment_notification_rejected", reason=exc.message, field=exc.field)
        return PlainTextResponse(exc.message, status_code=status.HTTP_400_BAD_REQUEST)
    except Exception as exc:
        logger.error(
            "payment_notification_failed",
            order_id=merchant_reference,
            tracking_id=tracking_id,
            error_type=getattr(exc, "error_type", type(exc).__name__),
            error=str(exc),
            details=getattr(exc, "details", None),
            exc_info=True,
        )
        return PlainTextResponse(IPN_FAILED_MESSAGE, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)
    return PlainTextResponse(IPN_OK_MESSAGE, status_code=status.HTTP_200_OK)


@router.get("/transaction-status", summary="Poll a transaction status")
async def transaction_status(
    tracking_id: Optional[str] = Query(default=None, alias="pesapalTrackingId"),
    service: PaymentService = Depends(get_payment_service),
):
    try:
        view = await service.query_status(tracking_id)
    except PaymentValidationError as exc:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"status": TransactionState.INVALID.value, "description": exc.message},
        )
    except Exception as exc:
        logger.error(
            "pesapal_status_query_failed",
            tracking_id=tracking_id,
            error_type=getattr(exc, "error_type", type(exc).__name__),
            error=str(exc),
            details=getattr(exc, "details", None),
            exc_info=not isinstance(exc, PaymentGatewayError),
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"status": TransactionState.FAILED.value, "description": STATUS_FAILED_MESSAGE},
        )
    return view.model_dump(mode="json")

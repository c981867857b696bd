"""Asaas checkout callbacks: success redirect and asynchronous notification.

Both endpoints are thin adapters over ReconciliationService.reconcile:

- /success is hit by the end user's browser when the hosted checkout
  redirects back. Errors stay generic since a person is looking at them.
- /notify is hit by Asaas. It answers 200 whenever processing succeeded
  (including "form not completed yet") and 500 only on real failures so that
  Asaas redelivers with its own backoff.
"""

import hmac
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import JSONResponse, RedirectResponse
from pydantic import BaseModel, Field, ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_db, get_gateway
from app.domain.services.reconciliation_service import CheckoutNotFound, ReconciliationService
from app.infrastructure.asaas_client import AsaasClient, GatewayUnavailable
from app.settings import settings

logger = logging.getLogger(__name__)

router = APIRouter()

WEBHOOK_TOKEN_HEADER = "asaas-access-token"


class CheckoutNotificationPayload(BaseModel):
    """Payload of an Asaas checkout notification."""

    checkout_id: str = Field(alias="checkoutId", min_length=1)
    event: str | None = None


def _verify_webhook_token(request: Request, expected_token: str) -> bool:
    """Check the shared webhook token Asaas sends with every notification."""
    received = request.headers.get(WEBHOOK_TOKEN_HEADER, "")
    return hmac.compare_digest(received, expected_token)


@router.get("/success")
async def checkout_success_callback(
    db: Annotated[AsyncSession, Depends(get_db)],
    gateway: Annotated[AsaasClient, Depends(get_gateway)],
    checkout_id: Annotated[str | None, Query(alias="checkoutId")] = None,
):
    """Handle the browser redirect after the user leaves the hosted checkout.

    Called whether or not the payment was confirmed; only a filled-in form
    leads to a conversion and the redirect to the success page.
    """
    if not checkout_id:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "checkout id not provided"},
        )

    logger.info(f"[CHECKOUT] Success redirect for checkout {checkout_id}")

    service = ReconciliationService(db, gateway)
    try:
        result = await service.reconcile(checkout_id)
    except CheckoutNotFound:
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"error": "checkout not found"},
        )
    except GatewayUnavailable as e:
        logger.error(f"[CHECKOUT] Gateway unavailable during success redirect for {checkout_id}: {e}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "could not process checkout", "details": "payment gateway unavailable"},
        )
    except Exception:
        logger.exception(f"[CHECKOUT] Success redirect failed for {checkout_id}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "could not process checkout", "details": "internal error"},
        )

    if result.pending:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "form not completed"},
        )

    return RedirectResponse(url=settings.checkout_success_url, status_code=status.HTTP_302_FOUND)


@router.post("/notify")
async def checkout_notification_callback(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
    gateway: Annotated[AsaasClient, Depends(get_gateway)],
) -> JSONResponse:
    """Handle an asynchronous checkout notification from Asaas.

    Request body schema:
    {
        "checkoutId": "asaas-payment-link-id",
        "event": "CHECKOUT_PAID"
    }

    Headers:
    - asaas-access-token: shared webhook token (checked when configured)
    """
    if settings.asaas_webhook_token and not _verify_webhook_token(request, settings.asaas_webhook_token):
        logger.warning("[CHECKOUT] Notification with invalid webhook token")
        return JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content={"error": "invalid webhook token"},
        )

    try:
        body = await request.json()
        payload = CheckoutNotificationPayload(**body)
    except (ValueError, TypeError, ValidationError) as e:
        logger.warning(f"[CHECKOUT] Invalid notification payload: {e}")
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "checkout id not provided"},
        )

    logger.info(
        f"[CHECKOUT] Notification {payload.event} for checkout {payload.checkout_id}",
        extra={"external_checkout_id": payload.checkout_id, "event": payload.event},
    )

    service = ReconciliationService(db, gateway)
    try:
        result = await service.reconcile(payload.checkout_id)
    except CheckoutNotFound as e:
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"error": "checkout not found", "details": str(e)},
        )
    except Exception as e:
        logger.exception(f"[CHECKOUT] Notification processing failed for {payload.checkout_id}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "could not process notification", "details": str(e)},
        )

    return JSONResponse(
        status_code=status.HTTP_200_OK,
        content={
            "success": True,
            "pending": result.pending,
            "checkoutStatus": result.checkout_status,
        },
    )

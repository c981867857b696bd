"""Operator checkout endpoints."""

import logging
from dataclasses import asdict
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_db, get_gateway, require_admin_key
from app.api.schemas.checkout import (
    CheckoutLinkResponse,
    CheckoutStatusResponse,
    ReconciliationResponse,
)
from app.domain.services.checkout_link_service import (
    CheckoutAlreadyCompleted,
    CheckoutLinkNotFound,
    CheckoutLinkService,
)
from app.domain.services.reconciliation_service import CheckoutNotFound, ReconciliationService
from app.infrastructure.asaas_client import AsaasClient, GatewayError
from app.persistence.repositories.checkout_link_repository import CheckoutLinkRepository

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(require_admin_key)])


@router.get("/{checkout_ref}/status", response_model=CheckoutStatusResponse)
async def check_checkout_status(
    checkout_ref: str,
    db: Annotated[AsyncSession, Depends(get_db)],
    gateway: Annotated[AsaasClient, Depends(get_gateway)],
) -> CheckoutStatusResponse:
    """Re-check a checkout at the gateway and apply whatever changed.

    The reference may be the gateway checkout id or the local checkout link id.
    """
    checkout_repo = CheckoutLinkRepository(db)
    link = await checkout_repo.get_by_reference(checkout_ref)
    if link is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Checkout not found")
    external_checkout_id = link.external_checkout_id

    service = ReconciliationService(db, gateway)
    try:
        result = await service.reconcile(external_checkout_id)
    except CheckoutNotFound:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Checkout not found")
    except GatewayError as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Could not check status at the payment gateway: {e}",
        )

    link = await checkout_repo.get_by_external_id(external_checkout_id)
    reconciliation = {k: v for k, v in asdict(result).items() if k != "lead_email"}
    return CheckoutStatusResponse(
        checkout=CheckoutLinkResponse.model_validate(link),
        reconciliation=ReconciliationResponse(**reconciliation),
    )


@router.delete("/{checkout_ref}", response_model=CheckoutLinkResponse)
async def cancel_checkout(
    checkout_ref: str,
    db: Annotated[AsyncSession, Depends(get_db)],
    gateway: Annotated[AsaasClient, Depends(get_gateway)],
) -> CheckoutLinkResponse:
    """Cancel an open checkout at the gateway and mark it canceled."""
    service = CheckoutLinkService(db, gateway)
    try:
        link = await service.cancel(checkout_ref)
    except CheckoutLinkNotFound:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Checkout not found")
    except CheckoutAlreadyCompleted:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Checkout is already completed by a client",
        )
    except GatewayError as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Could not cancel checkout at the payment gateway: {e}",
        )

    return CheckoutLinkResponse.model_validate(link)

"""Lead checkout and activity endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_db, get_gateway, require_admin_key
from app.api.schemas.checkout import (
    CheckoutCreate,
    CheckoutLinkResponse,
    LeadActivitiesResponse,
    LeadActivityResponse,
    LeadCheckoutsResponse,
)
from app.domain.services.checkout_link_service import (
    CheckoutLinkService,
    LeadAlreadyConverted,
    LeadNotFound,
)
from app.infrastructure.asaas_client import AsaasClient, GatewayError
from app.persistence.repositories.activity_repository import LeadActivityRepository
from app.persistence.repositories.checkout_link_repository import CheckoutLinkRepository
from app.persistence.repositories.lead_repository import LeadRepository

router = APIRouter(dependencies=[Depends(require_admin_key)])


@router.post(
    "/{lead_id}/checkout",
    response_model=CheckoutLinkResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_lead_checkout(
    lead_id: int,
    checkout_data: CheckoutCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    gateway: Annotated[AsaasClient, Depends(get_gateway)],
) -> CheckoutLinkResponse:
    """Create a hosted checkout link for a lead."""
    service = CheckoutLinkService(db, gateway)
    try:
        link = await service.create_for_lead(
            lead_id,
            description=checkout_data.description,
            value=checkout_data.value,
            due_date=checkout_data.due_date,
            expiration_minutes=checkout_data.expiration_minutes,
        )
    except LeadNotFound:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Lead not found")
    except LeadAlreadyConverted:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Lead is already converted")
    except GatewayError as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Could not create checkout at the payment gateway: {e}",
        )

    return CheckoutLinkResponse.model_validate(link)


@router.get("/{lead_id}/activities", response_model=LeadActivitiesResponse)
async def list_lead_activities(
    lead_id: int,
    db: Annotated[AsyncSession, Depends(get_db)],
    type: Annotated[str | None, Query()] = None,
    limit: Annotated[int, Query(ge=1, le=500)] = 100,
) -> LeadActivitiesResponse:
    """List a lead's activity trail, newest first."""
    lead = await LeadRepository(db).get_by_id(lead_id)
    if lead is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Lead not found")

    activities = await LeadActivityRepository(db).list_for_lead(lead_id, type=type, limit=limit)
    return LeadActivitiesResponse(
        activities=[LeadActivityResponse.model_validate(a) for a in activities],
        total=len(activities),
    )


@router.get("/{lead_id}/checkouts", response_model=LeadCheckoutsResponse)
async def list_lead_checkouts(
    lead_id: int,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> LeadCheckoutsResponse:
    """List the checkout links opened for a lead."""
    lead = await LeadRepository(db).get_by_id(lead_id)
    if lead is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Lead not found")

    links = await CheckoutLinkRepository(db).list_by_lead(lead_id)
    return LeadCheckoutsResponse(
        checkouts=[CheckoutLinkResponse.model_validate(link) for link in links],
        total=len(links),
    )

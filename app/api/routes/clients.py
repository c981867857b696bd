"""Client payment history and activity endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_db, require_admin_key
from app.api.schemas.checkout import (
    ClientActivitiesResponse,
    ClientActivityResponse,
    ClientPaymentsResponse,
    PaymentResponse,
)
from app.persistence.repositories.activity_repository import ClientActivityRepository
from app.persistence.repositories.client_repository import ClientRepository
from app.persistence.repositories.payment_repository import PaymentRepository

router = APIRouter(dependencies=[Depends(require_admin_key)])


async def _require_client(db: AsyncSession, client_id: int) -> None:
    client = await ClientRepository(db).get_by_id(client_id)
    if client is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Client not found")


@router.get("/{client_id}/payments", response_model=ClientPaymentsResponse)
async def list_client_payments(
    client_id: int,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> ClientPaymentsResponse:
    """List a client's payments, oldest first."""
    await _require_client(db, client_id)

    payments = await PaymentRepository(db).list_by_client(client_id)
    return ClientPaymentsResponse(
        payments=[PaymentResponse.model_validate(p) for p in payments],
        total=len(payments),
    )


@router.get("/{client_id}/activities", response_model=ClientActivitiesResponse)
async def list_client_activities(
    client_id: int,
    db: Annotated[AsyncSession, Depends(get_db)],
    type: Annotated[str | None, Query()] = None,
) -> ClientActivitiesResponse:
    """List a client's activity trail, newest first."""
    await _require_client(db, client_id)

    activities = await ClientActivityRepository(db).list_for_client(client_id, type=type)
    return ClientActivitiesResponse(
        activities=[ClientActivityResponse.model_validate(a) for a in activities],
        total=len(activities),
    )

"""Sweep worker for scheduled re-reconciliation of unresolved checkouts."""

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_gateway
from app.domain.services.lead_sweep_service import LeadSweepService
from app.infrastructure.asaas_client import AsaasClient
from app.persistence.database import get_db
from app.settings import settings

logger = logging.getLogger(__name__)

router = APIRouter()


class SweepTaskPayload(BaseModel):
    """Payload for a scheduled sweep task."""

    limit: int | None = None


@router.post("/sweep-checkouts")
async def process_sweep_task(
    db: Annotated[AsyncSession, Depends(get_db)],
    gateway: Annotated[AsaasClient, Depends(get_gateway)],
    payload: SweepTaskPayload | None = None,
) -> dict[str, Any]:
    """Process a scheduled checkout sweep.

    This endpoint is called by the scheduler on a fixed interval. It always
    answers 200 with a summary so that per-checkout failures are not retried
    as a whole batch; they are picked up again by the next run.
    """
    limit = payload.limit if payload and payload.limit else settings.sweep_batch_limit

    service = LeadSweepService(db, gateway)
    report = await service.sweep(limit=limit)

    logger.info(
        f"[SWEEP] Scheduled sweep: {report.count} converted, {len(report.pending)} pending, "
        f"{len(report.errors)} failed"
    )
    return {
        "status": "processed",
        "converted": report.count,
        "pending": len(report.pending),
        "failed": len(report.errors),
    }

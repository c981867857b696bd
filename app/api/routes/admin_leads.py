"""Operator-triggered lead maintenance endpoints."""

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_db, get_gateway, require_admin_key
from app.domain.services.lead_sweep_service import LeadSweepService
from app.infrastructure.asaas_client import AsaasClient
from app.settings import settings

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(require_admin_key)])


@router.post("/sweep")
async def sweep_pending_leads(
    db: Annotated[AsyncSession, Depends(get_db)],
    gateway: Annotated[AsaasClient, Depends(get_gateway)],
    limit: Annotated[int | None, Query(ge=1)] = None,
) -> dict[str, Any]:
    """Reconcile every lead checkout that never reached a terminal callback.

    Per-checkout failures are reported in ``errors`` and never abort the run.
    """
    service = LeadSweepService(db, gateway)
    report = await service.sweep(limit=limit or settings.sweep_batch_limit)
    logger.info(f"[SWEEP] Operator sweep converted {report.count} leads")
    return report.to_dict()

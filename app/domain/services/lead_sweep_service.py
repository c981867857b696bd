"""Batch re-reconciliation of checkouts that never produced a terminal callback.

Redirects and webhooks are best-effort: the browser may close before the
success redirect and webhooks can be lost. The sweep revisits every checkout
whose lead is still unconverted and guarantees eventual convergence.
"""

import logging
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from app.domain.services.checkout_status_normalizer import TERMINAL_CHECKOUT_STATUSES
from app.domain.services.reconciliation_service import ReconciliationService
from app.infrastructure.asaas_client import AsaasClient
from app.persistence.repositories.lead_repository import LeadRepository

logger = logging.getLogger(__name__)


@dataclass
class SweepCandidate:
    """Plain snapshot of a lead/checkout pair, safe to use after a rollback."""
    lead_id: int
    lead_email: str
    checkout_link_id: int
    external_checkout_id: str


@dataclass
class SweepReport:
    """Per-lead outcome of one sweep run."""
    conversions: list[dict[str, Any]] = field(default_factory=list)
    pending: list[dict[str, Any]] = field(default_factory=list)
    errors: list[dict[str, Any]] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.conversions)

    def to_dict(self) -> dict[str, Any]:
        return {
            "count": self.count,
            "conversions": self.conversions,
            "pending": self.pending,
            "errors": self.errors,
        }


class LeadSweepService:
    """Runs reconciliation over every unresolved lead checkout."""

    def __init__(self, session: AsyncSession, gateway: AsaasClient) -> None:
        """Initialize sweep service."""
        self.session = session
        self.lead_repo = LeadRepository(session)
        self.reconciliation = ReconciliationService(session, gateway)

    async def find_candidates(self, limit: int | None = None) -> list[SweepCandidate]:
        """List lead checkouts that may still need reconciling.

        Args:
            limit: Optional maximum number of checkouts

        Returns:
            List of candidates, oldest checkout first
        """
        rows = await self.lead_repo.list_with_unresolved_checkouts(
            exclude_statuses=TERMINAL_CHECKOUT_STATUSES, limit=limit
        )
        return [
            SweepCandidate(
                lead_id=lead.id,
                lead_email=lead.email,
                checkout_link_id=link.id,
                external_checkout_id=link.external_checkout_id,
            )
            for lead, link in rows
        ]

    async def sweep(self, limit: int | None = None) -> SweepReport:
        """Reconcile every candidate, isolating per-item failures.

        Args:
            limit: Optional maximum number of checkouts to process

        Returns:
            SweepReport with conversions, still-pending checkouts and errors
        """
        candidates = await self.find_candidates(limit=limit)
        logger.info(f"[SWEEP] Found {len(candidates)} unresolved lead checkouts")

        report = SweepReport()
        for candidate in candidates:
            try:
                result = await self.reconciliation.reconcile(candidate.external_checkout_id)
            except Exception as e:
                logger.warning(
                    f"[SWEEP] Failed to reconcile checkout {candidate.external_checkout_id} "
                    f"for lead {candidate.lead_id}: {e}",
                    extra={"lead_id": candidate.lead_id, "checkout_link_id": candidate.checkout_link_id},
                )
                report.errors.append({
                    "leadId": candidate.lead_id,
                    "leadEmail": candidate.lead_email,
                    "checkout": {"id": candidate.checkout_link_id, "externalId": candidate.external_checkout_id},
                    "error": type(e).__name__,
                    "details": str(e),
                })
                continue

            if result.pending:
                report.pending.append({
                    "leadId": candidate.lead_id,
                    "leadEmail": candidate.lead_email,
                    "checkout": {
                        "id": candidate.checkout_link_id,
                        "externalId": candidate.external_checkout_id,
                        "status": result.checkout_status,
                    },
                })
                continue

            report.conversions.append({
                "leadId": candidate.lead_id,
                "leadEmail": candidate.lead_email,
                "clientId": result.client_id,
                "isNewClient": result.is_new_client,
                "checkout": {
                    "id": candidate.checkout_link_id,
                    "externalId": candidate.external_checkout_id,
                    "status": result.checkout_status,
                },
            })

        logger.info(
            f"[SWEEP] Done: {report.count} converted, {len(report.pending)} pending, "
            f"{len(report.errors)} failed"
        )
        return report

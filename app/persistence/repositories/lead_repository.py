"""Lead repository."""

from collections.abc import Iterable
from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.persistence.models.checkout_link import CheckoutLink
from app.persistence.models.lead import Lead, LeadStatus
from app.persistence.repositories.base import BaseRepository


class LeadRepository(BaseRepository[Lead]):
    """Repository for Lead entities."""

    def __init__(self, session: AsyncSession):
        """Initialize lead repository."""
        super().__init__(Lead, session)

    async def mark_converted(self, lead_id: int, client_id: int) -> bool:
        """Move a lead to converted, unless it already is.

        The status guard lives in the UPDATE itself, so two concurrent
        reconciliations cannot both perform the transition.

        Args:
            lead_id: Lead ID
            client_id: Client the lead converted into

        Returns:
            True if this call performed the transition, False if the lead was
            already converted (or does not exist)
        """
        stmt = (
            update(Lead)
            .where(
                Lead.id == lead_id,
                Lead.status != LeadStatus.CONVERTED.value,
            )
            .values(
                status=LeadStatus.CONVERTED.value,
                converted_to_client_id=client_id,
                updated_at=datetime.utcnow(),
            )
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1

    async def list_with_unresolved_checkouts(
        self, exclude_statuses: Iterable[str] = (), limit: int | None = None
    ) -> list[tuple[Lead, CheckoutLink]]:
        """Find leads whose checkout may have completed without a terminal callback.

        A pair qualifies when the lead is not converted, the checkout has no
        client linked yet and the checkout status is not excluded.

        Args:
            exclude_statuses: Checkout statuses to skip (terminal states)
            limit: Optional maximum number of pairs to return

        Returns:
            (lead, checkout_link) pairs, oldest checkout first
        """
        stmt = (
            select(Lead, CheckoutLink)
            .join(CheckoutLink, CheckoutLink.lead_id == Lead.id)
            .where(
                Lead.status != LeadStatus.CONVERTED.value,
                CheckoutLink.client_id.is_(None),
            )
            .order_by(CheckoutLink.created_at, CheckoutLink.id)
        )
        exclude_statuses = list(exclude_statuses)
        if exclude_statuses:
            stmt = stmt.where(CheckoutLink.status.not_in(exclude_statuses))
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await self.session.execute(stmt)
        return [(lead, link) for lead, link in result.all()]

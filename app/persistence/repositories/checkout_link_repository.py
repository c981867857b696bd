"""Checkout link repository."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.persistence.models.checkout_link import CheckoutLink
from app.persistence.repositories.base import BaseRepository


class CheckoutLinkRepository(BaseRepository[CheckoutLink]):
    """Repository for CheckoutLink entities."""

    def __init__(self, session: AsyncSession):
        """Initialize checkout link repository."""
        super().__init__(CheckoutLink, session)

    async def get_by_external_id(self, external_checkout_id: str) -> CheckoutLink | None:
        """Get checkout link by the gateway's checkout id."""
        stmt = select(CheckoutLink).where(
            CheckoutLink.external_checkout_id == external_checkout_id
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_reference(self, reference: str) -> CheckoutLink | None:
        """Get checkout link by gateway checkout id or, for numeric references, local id.

        The gateway id wins when both could match.
        """
        link = await self.get_by_external_id(reference)
        if link is None and reference.isdigit():
            link = await self.get_by_id(int(reference))
        return link

    async def list_by_lead(self, lead_id: int) -> list[CheckoutLink]:
        """List checkout links created for a lead, oldest first."""
        stmt = (
            select(CheckoutLink)
            .where(CheckoutLink.lead_id == lead_id)
            .order_by(CheckoutLink.created_at, CheckoutLink.id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

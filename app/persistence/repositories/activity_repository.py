"""Repositories for the append-only lead and client activity trails."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.persistence.models.activity import ClientActivity, LeadActivity
from app.persistence.repositories.base import BaseRepository


class LeadActivityRepository(BaseRepository[LeadActivity]):
    """Repository for LeadActivity entries."""

    def __init__(self, session: AsyncSession):
        """Initialize lead activity repository."""
        super().__init__(LeadActivity, session)

    async def record(
        self, lead_id: int, type: str, description: str, details: dict | None = None
    ) -> LeadActivity:
        """Append an activity entry for a lead."""
        return await self.create(
            lead_id=lead_id, type=type, description=description, details=details
        )

    async def list_for_lead(
        self, lead_id: int, type: str | None = None, limit: int = 100
    ) -> list[LeadActivity]:
        """List a lead's activities, newest first.

        Args:
            lead_id: Lead ID
            type: Optional activity type filter
            limit: Maximum number of entries

        Returns:
            List of activities
        """
        stmt = select(LeadActivity).where(LeadActivity.lead_id == lead_id)
        if type is not None:
            stmt = stmt.where(LeadActivity.type == type)
        stmt = stmt.order_by(LeadActivity.created_at.desc(), LeadActivity.id.desc()).limit(limit)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())


class ClientActivityRepository(BaseRepository[ClientActivity]):
    """Repository for ClientActivity entries."""

    def __init__(self, session: AsyncSession):
        """Initialize client activity repository."""
        super().__init__(ClientActivity, session)

    async def record(
        self, client_id: int, type: str, description: str, details: dict | None = None
    ) -> ClientActivity:
        """Append an activity entry for a client."""
        return await self.create(
            client_id=client_id, type=type, description=description, details=details
        )

    async def list_for_client(self, client_id: int, type: str | None = None) -> list[ClientActivity]:
        """List a client's activities, newest first."""
        stmt = select(ClientActivity).where(ClientActivity.client_id == client_id)
        if type is not None:
            stmt = stmt.where(ClientActivity.type == type)
        stmt = stmt.order_by(ClientActivity.created_at.desc(), ClientActivity.id.desc())
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

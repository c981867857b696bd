"""Client repository."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.persistence.models.client import Client
from app.persistence.repositories.base import BaseRepository


class ClientRepository(BaseRepository[Client]):
    """Repository for Client entities."""

    def __init__(self, session: AsyncSession):
        """Initialize client repository."""
        super().__init__(Client, session)

    async def get_by_email(self, email: str) -> Client | None:
        """Get client by email (the client identity key).

        Args:
            email: Email address

        Returns:
            Client or None if not found
        """
        stmt = select(Client).where(Client.email == email)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

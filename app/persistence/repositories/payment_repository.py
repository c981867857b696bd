"""Payment repository."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.persistence.models.payment import Payment
from app.persistence.repositories.base import BaseRepository


class PaymentRepository(BaseRepository[Payment]):
    """Repository for Payment entities."""

    def __init__(self, session: AsyncSession):
        """Initialize payment repository."""
        super().__init__(Payment, session)

    async def get_by_external_id(self, external_payment_id: str) -> Payment | None:
        """Get payment by the gateway's payment id."""
        stmt = select(Payment).where(Payment.external_payment_id == external_payment_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_by_client(self, client_id: int) -> list[Payment]:
        """List payments for a client, oldest first."""
        stmt = (
            select(Payment)
            .where(Payment.client_id == client_id)
            .order_by(Payment.created_at, Payment.id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

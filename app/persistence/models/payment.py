"""Payment model."""

from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy import JSON, Column, Date, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship

from app.persistence.database import Base

if TYPE_CHECKING:
    from app.persistence.models.checkout_link import CheckoutLink
    from app.persistence.models.client import Client


class PaymentStatus(str, Enum):
    """Closed payment status taxonomy."""

    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


class Payment(Base):
    """A monetary transaction observed at the gateway for a client.

    external_payment_id is the idempotency key: re-observing the same gateway
    payment only updates status.
    """

    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, index=True)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=False, index=True)
    checkout_link_id = Column(Integer, ForeignKey("checkout_links.id"), nullable=True, index=True)

    type = Column(String(50), nullable=False, default="checkout")
    status = Column(String(50), nullable=False, default=PaymentStatus.PENDING.value, index=True)
    value = Column(Numeric(10, 2), nullable=False)
    payment_method = Column(String(50), nullable=True)  # BOLETO, CREDIT_CARD, PIX, UNDEFINED
    description = Column(Text, nullable=True)
    payment_date = Column(Date, nullable=True)  # Settlement date reported by the gateway
    invoice_url = Column(String(1000), nullable=True)  # Gateway-hosted invoice page

    external_payment_id = Column(String(100), nullable=False, unique=True, index=True)
    raw_payload = Column(JSON, nullable=True)  # Gateway payment object as first observed

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    client = relationship("Client", back_populates="payments")
    checkout_link = relationship("CheckoutLink", foreign_keys=[checkout_link_id])

    def __repr__(self) -> str:
        return (
            f"<Payment(id={self.id}, external_payment_id={self.external_payment_id}, "
            f"status={self.status}, value={self.value})>"
        )

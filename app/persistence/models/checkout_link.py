"""Checkout link model mirroring an externally hosted Asaas checkout session."""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship

from app.persistence.database import Base

if TYPE_CHECKING:
    from app.persistence.models.client import Client
    from app.persistence.models.lead import Lead


class CheckoutLink(Base):
    """One checkout session created at the gateway for a lead."""

    __tablename__ = "checkout_links"

    id = Column(Integer, primary_key=True, index=True)
    external_checkout_id = Column(String(255), nullable=False, unique=True, index=True)
    lead_id = Column(Integer, ForeignKey("leads.id"), nullable=False, index=True)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=True, index=True)

    # Normalized checkout status: pending, completed, failed, refunded, canceled, expired
    status = Column(String(50), nullable=False, default="pending", index=True)

    url = Column(String(1000), nullable=True)
    description = Column(Text, nullable=True)
    value = Column(Numeric(10, 2), nullable=True)
    due_date = Column(Date, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    lead = relationship("Lead", back_populates="checkout_links")
    client = relationship("Client", foreign_keys=[client_id])

    def __repr__(self) -> str:
        return (
            f"<CheckoutLink(id={self.id}, external_checkout_id={self.external_checkout_id}, "
            f"lead_id={self.lead_id}, client_id={self.client_id}, status={self.status})>"
        )

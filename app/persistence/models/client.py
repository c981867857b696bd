"""Client model for converted, billable customers."""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from app.persistence.database import Base

if TYPE_CHECKING:
    from app.persistence.models.activity import ClientActivity
    from app.persistence.models.payment import Payment


class Client(Base):
    """Client model representing a converted, billable customer.

    Unlike leads (prospects), a client exists once a checkout form has been
    filled in. Email is the identity key: at most one client per email.
    """

    __tablename__ = "clients"

    id = Column(Integer, primary_key=True, index=True)

    # Customer info, mirrored from the gateway checkout customer
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    phone = Column(String(50), nullable=True)
    document = Column(String(20), nullable=True)

    status = Column(String(50), default="active", nullable=False)  # active, inactive
    segment = Column(String(50), default="default", nullable=False)

    # Asaas customer id (null when customer creation failed at conversion time)
    external_customer_id = Column(String(100), nullable=True, index=True)

    created_from_lead_id = Column(Integer, ForeignKey("leads.id"), nullable=True, index=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    created_from_lead = relationship("Lead", foreign_keys=[created_from_lead_id])
    payments = relationship("Payment", back_populates="client")
    activities = relationship("ClientActivity", back_populates="client")

    def __repr__(self) -> str:
        return f"<Client(id={self.id}, email={self.email}, status={self.status})>"

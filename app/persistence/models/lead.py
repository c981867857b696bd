"""Lead model."""

from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from app.persistence.database import Base

if TYPE_CHECKING:
    from app.persistence.models.activity import LeadActivity
    from app.persistence.models.checkout_link import CheckoutLink
    from app.persistence.models.client import Client


class LeadStatus(str, Enum):
    """Lifecycle states of a lead."""

    NEW = "new"
    CONTACTED = "contacted"
    CONVERTED = "converted"


class Lead(Base):
    """Lead model representing a prospective customer captured before payment."""

    __tablename__ = "leads"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, index=True)
    phone = Column(String(50), nullable=True)
    document = Column(String(20), nullable=True)  # CPF/CNPJ
    segment = Column(String(50), nullable=True)
    status = Column(String(50), nullable=False, default=LeadStatus.NEW.value, index=True)
    converted_to_client_id = Column(
        Integer,
        ForeignKey("clients.id", use_alter=True, name="fk_leads_converted_to_client_id"),
        nullable=True,
        index=True,
    )

    # Gateway customer id captured before conversion (e.g. by sales intake)
    external_customer_id = Column(String(100), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    converted_to_client = relationship("Client", foreign_keys=[converted_to_client_id])
    checkout_links = relationship("CheckoutLink", back_populates="lead")
    activities = relationship("LeadActivity", back_populates="lead")

    @property
    def is_converted(self) -> bool:
        return self.status == LeadStatus.CONVERTED.value

    def __repr__(self) -> str:
        return f"<Lead(id={self.id}, email={self.email}, status={self.status})>"

"""Append-only activity trail for leads and clients."""

from datetime import datetime
from enum import Enum

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from app.persistence.database import Base


class ActivityType(str, Enum):
    """Types of recorded activity."""

    CONVERSION = "conversion"
    CHECKOUT = "checkout"


class LeadActivity(Base):
    """One state transition or interaction on a lead. Never updated or deleted."""

    __tablename__ = "lead_activities"

    id = Column(Integer, primary_key=True, index=True)
    lead_id = Column(Integer, ForeignKey("leads.id"), nullable=False, index=True)
    type = Column(String(50), nullable=False, index=True)
    description = Column(Text, nullable=False)
    details = Column(JSON, nullable=True)  # Ids involved in the transition
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    lead = relationship("Lead", back_populates="activities")

    def __repr__(self) -> str:
        return f"<LeadActivity(id={self.id}, lead_id={self.lead_id}, type={self.type})>"


class ClientActivity(Base):
    """One state transition on a client. Never updated or deleted."""

    __tablename__ = "client_activities"

    id = Column(Integer, primary_key=True, index=True)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=False, index=True)
    type = Column(String(50), nullable=False, index=True)
    description = Column(Text, nullable=False)
    details = Column(JSON, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    client = relationship("Client", back_populates="activities")

    def __repr__(self) -> str:
        return f"<ClientActivity(id={self.id}, client_id={self.client_id}, type={self.type})>"

"""Database models."""

from app.persistence.models.activity import ActivityType, ClientActivity, LeadActivity
from app.persistence.models.checkout_link import CheckoutLink
from app.persistence.models.client import Client
from app.persistence.models.lead import Lead, LeadStatus
from app.persistence.models.payment import Payment, PaymentStatus

__all__ = [
    "ActivityType",
    "CheckoutLink",
    "Client",
    "ClientActivity",
    "Lead",
    "LeadActivity",
    "LeadStatus",
    "Payment",
    "PaymentStatus",
]

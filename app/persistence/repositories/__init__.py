"""Repository implementations."""

from app.persistence.repositories.activity_repository import (
    ClientActivityRepository,
    LeadActivityRepository,
)
from app.persistence.repositories.base import BaseRepository
from app.persistence.repositories.checkout_link_repository import CheckoutLinkRepository
from app.persistence.repositories.client_repository import ClientRepository
from app.persistence.repositories.lead_repository import LeadRepository
from app.persistence.repositories.payment_repository import PaymentRepository

__all__ = [
    "BaseRepository",
    "CheckoutLinkRepository",
    "ClientActivityRepository",
    "ClientRepository",
    "LeadActivityRepository",
    "LeadRepository",
    "PaymentRepository",
]

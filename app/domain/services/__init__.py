"""Domain services."""

from app.domain.services.checkout_link_service import CheckoutLinkService
from app.domain.services.lead_sweep_service import LeadSweepService
from app.domain.services.reconciliation_service import ReconciliationService

__all__ = ["CheckoutLinkService", "LeadSweepService", "ReconciliationService"]

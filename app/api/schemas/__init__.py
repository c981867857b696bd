"""API schemas package."""

from app.api.schemas.checkout import (
    CheckoutCreate,
    CheckoutLinkResponse,
    CheckoutStatusResponse,
    ClientActivitiesResponse,
    ClientActivityResponse,
    ClientPaymentsResponse,
    LeadActivitiesResponse,
    LeadActivityResponse,
    LeadCheckoutsResponse,
    PaymentResponse,
    ReconciliationResponse,
)

__all__ = [
    "CheckoutCreate",
    "CheckoutLinkResponse",
    "CheckoutStatusResponse",
    "ClientActivitiesResponse",
    "ClientActivityResponse",
    "ClientPaymentsResponse",
    "LeadActivitiesResponse",
    "LeadActivityResponse",
    "LeadCheckoutsResponse",
    "PaymentResponse",
    "ReconciliationResponse",
]

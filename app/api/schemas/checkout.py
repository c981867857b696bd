"""Checkout, lead activity and reconciliation API schemas."""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field


class CheckoutCreate(BaseModel):
    """Request to open a hosted checkout for a lead."""

    description: str = Field(min_length=3)
    value: Decimal = Field(gt=0)
    due_date: date
    expiration_minutes: int = Field(default=30, ge=5, le=60)


class CheckoutLinkResponse(BaseModel):
    """Checkout link response model."""

    id: int
    external_checkout_id: str
    lead_id: int
    client_id: int | None
    status: str
    url: str | None
    description: str | None
    value: Decimal | None
    due_date: date | None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ReconciliationResponse(BaseModel):
    """Outcome of a reconcile call, as exposed to operators."""

    pending: bool
    external_checkout_id: str
    checkout_link_id: int | None = None
    lead_id: int | None = None
    client_id: int | None = None
    is_new_client: bool = False
    lead_converted: bool = False
    checkout_status: str | None = None
    payment_recorded: bool = False
    payment_created: bool = False
    payment_status: str | None = None


class CheckoutStatusResponse(BaseModel):
    """Stored checkout link plus the reconciliation it triggered."""

    checkout: CheckoutLinkResponse
    reconciliation: ReconciliationResponse


class LeadActivityResponse(BaseModel):
    """Lead activity response model."""

    id: int
    lead_id: int
    type: str
    description: str
    details: dict | None
    created_at: datetime

    class Config:
        from_attributes = True


class LeadActivitiesResponse(BaseModel):
    """Lead activity feed."""

    activities: list[LeadActivityResponse]
    total: int


class LeadCheckoutsResponse(BaseModel):
    """Checkout links opened for a lead."""

    checkouts: list[CheckoutLinkResponse]
    total: int


class PaymentResponse(BaseModel):
    """Payment response model."""

    id: int
    client_id: int
    checkout_link_id: int | None
    external_payment_id: str
    type: str
    status: str
    value: Decimal
    payment_method: str | None
    description: str | None
    payment_date: date | None
    invoice_url: str | None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ClientPaymentsResponse(BaseModel):
    """Payments recorded for a client, oldest first."""

    payments: list[PaymentResponse]
    total: int


class ClientActivityResponse(BaseModel):
    """Client activity response model."""

    id: int
    client_id: int
    type: str
    description: str
    details: dict | None
    created_at: datetime

    class Config:
        from_attributes = True


class ClientActivitiesResponse(BaseModel):
    """Client activity feed."""

    activities: list[ClientActivityResponse]
    total: int

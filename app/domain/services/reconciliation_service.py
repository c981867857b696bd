"""Checkout reconciliation service.

Syncs local state with the latest gateway state of one checkout: converts the
owning lead into a client, links the checkout to that client and records the
checkout's payment. Safe to call any number of times, concurrently, for the
same checkout: every write re-checks for an existing row first and the
database unique constraints settle races.
"""

import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.domain.services.checkout_status_normalizer import (
    normalize_checkout_status,
    normalize_payment_status,
)
from app.infrastructure.asaas_client import (
    AsaasClient,
    CheckoutCustomer,
    CheckoutPayment,
    CheckoutStatus,
    CustomerProfile,
    GatewayError,
)
from app.persistence.models.activity import ActivityType
from app.persistence.models.checkout_link import CheckoutLink
from app.persistence.models.client import Client
from app.persistence.models.lead import Lead
from app.persistence.models.payment import Payment, PaymentStatus
from app.persistence.repositories.activity_repository import (
    ClientActivityRepository,
    LeadActivityRepository,
)
from app.persistence.repositories.checkout_link_repository import CheckoutLinkRepository
from app.persistence.repositories.client_repository import ClientRepository
from app.persistence.repositories.lead_repository import LeadRepository
from app.persistence.repositories.payment_repository import PaymentRepository

logger = logging.getLogger(__name__)


class CheckoutNotFound(Exception):
    """No local checkout link exists for the given gateway checkout id."""

    def __init__(self, external_checkout_id: str) -> None:
        super().__init__(f"Checkout {external_checkout_id} not found")
        self.external_checkout_id = external_checkout_id


class ReconciliationError(Exception):
    """Local data is inconsistent and the checkout cannot be reconciled."""
    pass


@dataclass
class ReconciliationResult:
    """Outcome of one reconcile call."""
    pending: bool
    external_checkout_id: str
    checkout_link_id: int | None = None
    lead_id: int | None = None
    lead_email: str | None = None
    client_id: int | None = None
    is_new_client: bool = False
    lead_converted: bool = False
    checkout_status: str | None = None
    payment_recorded: bool = False
    payment_created: bool = False
    payment_status: str | None = None


def normalize_email(email: str) -> str:
    """Canonical form used as the client identity key."""
    return email.strip().lower()


class ReconciliationService:
    """Applies the observed gateway state of a checkout to local records."""

    def __init__(self, session: AsyncSession, gateway: AsaasClient) -> None:
        """Initialize reconciliation service.

        Args:
            session: Database session; this service commits or rolls it back
            gateway: Asaas client used to fetch checkout state and create customers
        """
        self.session = session
        self.gateway = gateway
        self.lead_repo = LeadRepository(session)
        self.client_repo = ClientRepository(session)
        self.checkout_repo = CheckoutLinkRepository(session)
        self.payment_repo = PaymentRepository(session)
        self.lead_activity_repo = LeadActivityRepository(session)
        self.client_activity_repo = ClientActivityRepository(session)

    async def reconcile(self, external_checkout_id: str) -> ReconciliationResult:
        """Reconcile one checkout with its current gateway state.

        Nothing is written until the end user has filled in the checkout form
        (the gateway reports a customer). From then on the client, lead
        conversion, checkout link and payment updates are applied in a single
        transaction.

        Args:
            external_checkout_id: Gateway checkout (payment link) id

        Returns:
            ReconciliationResult

        Raises:
            CheckoutNotFound: No local checkout link for this id
            GatewayUnavailable: Gateway unreachable; nothing was written
            GatewayError: Gateway rejected the lookup; nothing was written
        """
        link = await self.checkout_repo.get_by_external_id(external_checkout_id)
        if link is None:
            logger.warning(f"[RECONCILE] Checkout {external_checkout_id} not found locally")
            raise CheckoutNotFound(external_checkout_id)

        external = await self.gateway.get_checkout_status(external_checkout_id)

        if not external.form_completed:
            logger.info(
                f"[RECONCILE] Checkout {external_checkout_id} form not completed yet",
                extra={"external_checkout_id": external_checkout_id, "gateway_status": external.status},
            )
            return ReconciliationResult(
                pending=True,
                external_checkout_id=external_checkout_id,
                checkout_link_id=link.id,
                lead_id=link.lead_id,
                client_id=link.client_id,
                checkout_status=link.status,
            )

        external = await self._with_full_payment(external)

        checkout_link_id = link.id
        try:
            result = await self._apply(link, external)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            logger.exception(
                f"[RECONCILE] Failed to reconcile checkout {external_checkout_id}",
                extra={"external_checkout_id": external_checkout_id, "checkout_link_id": checkout_link_id},
            )
            raise

        logger.info(
            f"[RECONCILE] Checkout {external_checkout_id} reconciled",
            extra={
                "external_checkout_id": external_checkout_id,
                "lead_id": result.lead_id,
                "client_id": result.client_id,
                "is_new_client": result.is_new_client,
                "lead_converted": result.lead_converted,
                "checkout_status": result.checkout_status,
                "payment_created": result.payment_created,
                "payment_status": result.payment_status,
            },
        )
        return result

    async def _with_full_payment(self, external: CheckoutStatus) -> CheckoutStatus:
        """Swap the embedded checkout payment for the full gateway charge.

        The full charge carries the payment date and invoice URL. Any failure
        keeps the embedded payment, which is enough to reconcile.
        """
        if external.payment is None:
            return external

        try:
            full = await self.gateway.get_payment(external.payment.id)
        except GatewayError as e:
            logger.warning(
                f"[RECONCILE] Could not fetch payment {external.payment.id}, using checkout data: {e}",
                extra={"external_payment_id": external.payment.id},
            )
            return external
        if full is None:
            return external

        raw = dict(external.raw)
        raw["payment"] = full.model_dump(by_alias=True, mode="json")
        return external.model_copy(update={"payment": full, "raw": raw})

    async def _apply(self, link: CheckoutLink, external: CheckoutStatus) -> ReconciliationResult:
        # Order matters: the payment needs the client link, and the lead
        # conversion activity must precede the payment in the audit trail.
        lead = await self.lead_repo.get_by_id(link.lead_id)
        if lead is None:
            raise ReconciliationError(
                f"Checkout {link.external_checkout_id} references missing lead {link.lead_id}"
            )

        client, is_new_client = await self._resolve_client(lead, link, external.customer)
        lead_converted = await self._convert_lead(lead, client, link, is_new_client)
        checkout_status = await self._link_checkout(link, client, external.status)
        payment_recorded, payment_created, payment_status = await self._resolve_payment(
            link, external
        )

        return ReconciliationResult(
            pending=False,
            external_checkout_id=link.external_checkout_id,
            checkout_link_id=link.id,
            lead_id=lead.id,
            lead_email=lead.email,
            client_id=link.client_id,
            is_new_client=is_new_client,
            lead_converted=lead_converted,
            checkout_status=checkout_status,
            payment_recorded=payment_recorded,
            payment_created=payment_created,
            payment_status=payment_status.value if payment_status else None,
        )

    async def _resolve_client(
        self, lead: Lead, link: CheckoutLink, customer: CheckoutCustomer
    ) -> tuple[Client, bool]:
        """Find the client for the checkout customer's email or create it.

        Returns:
            (client, is_new_client)
        """
        email = normalize_email(customer.email)
        existing = await self.client_repo.get_by_email(email)
        if existing is not None:
            return existing, False

        external_customer_id = await self._obtain_external_customer_id(lead, customer)

        try:
            async with self.session.begin_nested():
                client = await self.client_repo.create(
                    name=customer.name,
                    email=email,
                    phone=customer.phone or lead.phone,
                    document=customer.document or lead.document,
                    status="active",
                    segment=lead.segment or "default",
                    external_customer_id=external_customer_id,
                    created_from_lead_id=lead.id,
                )
        except IntegrityError:
            # Another reconciliation inserted the same email first
            client = await self.client_repo.get_by_email(email)
            if client is None:
                raise
            logger.info(f"[RECONCILE] Client for {email} created concurrently, reusing {client.id}")
            return client, False

        await self.client_activity_repo.record(
            client.id,
            ActivityType.CONVERSION.value,
            "Client created from checkout",
            {
                "leadId": lead.id,
                "checkoutLinkId": link.id,
                "externalCheckoutId": link.external_checkout_id,
                "externalCustomerId": external_customer_id,
            },
        )
        return client, True

    async def _obtain_external_customer_id(
        self, lead: Lead, customer: CheckoutCustomer
    ) -> str | None:
        """Reuse a known gateway customer id or create one.

        A failed creation is logged and yields None: the conversion must not
        be blocked by the billing profile.
        """
        if lead.external_customer_id:
            return lead.external_customer_id
        if customer.id:
            return customer.id

        profile = CustomerProfile(
            name=customer.name,
            email=normalize_email(customer.email),
            phone=customer.phone or lead.phone,
            document=customer.document or lead.document,
        )
        try:
            created = await self.gateway.create_customer(profile)
        except GatewayError as e:
            logger.warning(
                f"[RECONCILE] Gateway customer creation failed for lead {lead.id}, continuing without external id: {e}",
                extra={"lead_id": lead.id, "email": profile.email},
            )
            return None
        return created.external_customer_id

    async def _convert_lead(
        self, lead: Lead, client: Client, link: CheckoutLink, is_new_client: bool
    ) -> bool:
        """Mark the lead converted once; returns True only for the call that did it."""
        if lead.is_converted:
            return False

        if not await self.lead_repo.mark_converted(lead.id, client.id):
            return False

        await self.lead_activity_repo.record(
            lead.id,
            ActivityType.CONVERSION.value,
            "Lead converted to client via checkout",
            {
                "clientId": client.id,
                "checkoutLinkId": link.id,
                "externalCheckoutId": link.external_checkout_id,
                "isNewClient": is_new_client,
            },
        )
        return True

    async def _link_checkout(self, link: CheckoutLink, client: Client, raw_status: str) -> str:
        """Attach the client (first time only) and mirror the latest checkout status."""
        checkout_status = normalize_checkout_status(raw_status)

        if link.client_id is None:
            link.client_id = client.id
        elif link.client_id != client.id:
            logger.warning(
                f"[RECONCILE] Checkout {link.external_checkout_id} already linked to client "
                f"{link.client_id}, customer email resolves to {client.id}; keeping existing link"
            )

        link.status = checkout_status
        link.updated_at = datetime.utcnow()
        await self.session.flush()
        return checkout_status

    async def _resolve_payment(
        self, link: CheckoutLink, external: CheckoutStatus
    ) -> tuple[bool, bool, PaymentStatus | None]:
        """Create or update the Payment row for the checkout's payment.

        Returns:
            (payment_recorded, payment_created, normalized_status)
        """
        payment = external.payment
        if payment is None:
            return False, False, None

        status = normalize_payment_status(payment.status)

        existing = await self.payment_repo.get_by_external_id(payment.id)
        if existing is not None:
            await self._update_payment(existing, payment, status)
            return True, False, status

        if status != PaymentStatus.COMPLETED:
            # Only completed payments become Payment rows; earlier states
            # are visible through the checkout status.
            logger.info(
                f"[RECONCILE] Payment {payment.id} is {status.value}, not recording yet",
                extra={"external_payment_id": payment.id, "raw_status": payment.status},
            )
            return False, False, status

        try:
            async with self.session.begin_nested():
                await self.payment_repo.create(
                    client_id=link.client_id,
                    checkout_link_id=link.id,
                    type="checkout",
                    status=status.value,
                    value=payment.value,
                    payment_method=payment.billing_type,
                    description=self._payment_description(link, payment),
                    payment_date=payment.payment_date,
                    invoice_url=payment.invoice_url,
                    external_payment_id=payment.id,
                    raw_payload=external.raw.get("payment") or payment.model_dump(by_alias=True, mode="json"),
                )
        except IntegrityError:
            existing = await self.payment_repo.get_by_external_id(payment.id)
            if existing is None:
                raise
            logger.info(f"[RECONCILE] Payment {payment.id} recorded concurrently, updating status")
            await self._update_payment(existing, payment, status)
            return True, False, status

        return True, True, status

    async def _update_payment(
        self, payment: Payment, observed: CheckoutPayment, status: PaymentStatus
    ) -> None:
        """Move the row to the observed status and fill in late-arriving details."""
        changed = False
        if payment.status != status.value:
            logger.info(
                f"[RECONCILE] Payment {payment.external_payment_id} {payment.status} -> {status.value}"
            )
            payment.status = status.value
            changed = True
        if payment.payment_date is None and observed.payment_date is not None:
            payment.payment_date = observed.payment_date
            changed = True
        if payment.invoice_url is None and observed.invoice_url:
            payment.invoice_url = observed.invoice_url
            changed = True
        if not changed:
            return
        payment.updated_at = datetime.utcnow()
        await self.session.flush()

    @staticmethod
    def _payment_description(link: CheckoutLink, payment: CheckoutPayment) -> str:
        return payment.description or link.description or f"Asaas checkout {link.external_checkout_id}"

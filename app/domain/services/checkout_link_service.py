"""Checkout link service for opening hosted checkouts for leads."""

import logging
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from app.domain.services.checkout_status_normalizer import CHECKOUT_CANCELED
from app.infrastructure.asaas_client import AsaasClient, CheckoutLinkRequest
from app.persistence.models.activity import ActivityType
from app.persistence.models.checkout_link import CheckoutLink
from app.persistence.repositories.activity_repository import LeadActivityRepository
from app.persistence.repositories.checkout_link_repository import CheckoutLinkRepository
from app.persistence.repositories.lead_repository import LeadRepository
from app.settings import settings

logger = logging.getLogger(__name__)


class LeadNotFound(Exception):
    """No lead exists with the given id."""
    pass


class LeadAlreadyConverted(Exception):
    """The lead is already a client; a new checkout would not convert anything."""
    pass


class CheckoutLinkNotFound(Exception):
    """No checkout link matches the given reference."""
    pass


class CheckoutAlreadyCompleted(Exception):
    """The checkout form was filled in; canceling would orphan a conversion."""
    pass


class CheckoutLinkService:
    """Service for creating checkout links for leads."""

    def __init__(self, session: AsyncSession, gateway: AsaasClient) -> None:
        """Initialize checkout link service."""
        self.session = session
        self.gateway = gateway
        self.lead_repo = LeadRepository(session)
        self.checkout_repo = CheckoutLinkRepository(session)
        self.lead_activity_repo = LeadActivityRepository(session)

    @staticmethod
    def callback_urls() -> tuple[str, str]:
        """Success redirect and notification URLs handed to the gateway."""
        base = f"{settings.app_base_url.rstrip('/')}{settings.api_v1_prefix}"
        return f"{base}/checkout/success", f"{base}/checkout/notify"

    async def create_for_lead(
        self,
        lead_id: int,
        description: str,
        value: Decimal,
        due_date: date,
        expiration_minutes: int = 30,
    ) -> CheckoutLink:
        """Open a hosted checkout at the gateway and record it locally.

        Args:
            lead_id: Lead the checkout is for
            description: Charge description shown to the customer
            value: Amount to charge
            due_date: Last day the charge can be paid
            expiration_minutes: Lifetime of the checkout session

        Returns:
            The persisted CheckoutLink (status pending)

        Raises:
            LeadNotFound: Unknown lead
            LeadAlreadyConverted: Lead is already converted
            GatewayError: Gateway refused or failed to create the link
        """
        lead = await self.lead_repo.get_by_id(lead_id)
        if lead is None:
            raise LeadNotFound(f"Lead {lead_id} not found")
        if lead.is_converted:
            raise LeadAlreadyConverted(f"Lead {lead_id} is already converted")

        success_url, notification_url = self.callback_urls()
        created = await self.gateway.create_checkout_link(
            CheckoutLinkRequest(
                name=lead.name,
                email=lead.email,
                value=value,
                description=description,
                due_date=due_date,
                expiration_minutes=expiration_minutes,
                success_url=success_url,
                notification_url=notification_url,
            )
        )

        try:
            link = await self.checkout_repo.create(
                external_checkout_id=created.external_checkout_id,
                lead_id=lead.id,
                status="pending",
                url=created.url,
                description=description,
                value=value,
                due_date=due_date,
            )
            await self.lead_activity_repo.record(
                lead.id,
                ActivityType.CHECKOUT.value,
                "Checkout link created",
                {
                    "checkoutLinkId": link.id,
                    "externalCheckoutId": created.external_checkout_id,
                    "value": str(value),
                    "description": description,
                },
            )
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            logger.exception(
                f"[CHECKOUT] Gateway link {created.external_checkout_id} created but not saved for lead {lead_id}"
            )
            raise

        logger.info(
            f"[CHECKOUT] Created checkout {created.external_checkout_id} for lead {lead_id}",
            extra={"lead_id": lead_id, "checkout_link_id": link.id},
        )
        return link

    async def cancel(self, reference: str) -> CheckoutLink:
        """Cancel an open checkout at the gateway and mark it canceled locally.

        Args:
            reference: Gateway checkout id or local checkout link id

        Returns:
            The updated CheckoutLink (status canceled)

        Raises:
            CheckoutLinkNotFound: Unknown checkout
            CheckoutAlreadyCompleted: A client is already linked to the checkout
            GatewayError: Gateway refused or failed the cancellation
        """
        link = await self.checkout_repo.get_by_reference(reference)
        if link is None:
            raise CheckoutLinkNotFound(f"Checkout {reference} not found")
        if link.client_id is not None:
            raise CheckoutAlreadyCompleted(
                f"Checkout {link.external_checkout_id} is already linked to client {link.client_id}"
            )
        if link.status == CHECKOUT_CANCELED:
            return link

        await self.gateway.cancel_checkout_link(link.external_checkout_id)

        try:
            link.status = CHECKOUT_CANCELED
            link.updated_at = datetime.utcnow()
            await self.lead_activity_repo.record(
                link.lead_id,
                ActivityType.CHECKOUT.value,
                "Checkout link canceled",
                {"checkoutLinkId": link.id, "externalCheckoutId": link.external_checkout_id},
            )
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            logger.exception(
                f"[CHECKOUT] Gateway link {reference} canceled but local status not saved"
            )
            raise

        logger.info(
            f"[CHECKOUT] Canceled checkout {link.external_checkout_id}",
            extra={"lead_id": link.lead_id, "checkout_link_id": link.id},
        )
        return link

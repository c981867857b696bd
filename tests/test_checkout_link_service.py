"""Tests for checkout link creation."""

from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import func, select

from app.domain.services.checkout_link_service import (
    CheckoutAlreadyCompleted,
    CheckoutLinkNotFound,
    CheckoutLinkService,
    LeadAlreadyConverted,
    LeadNotFound,
)
from app.infrastructure.asaas_client import GatewayError
from app.persistence.models.checkout_link import CheckoutLink
from app.persistence.models.client import Client
from app.persistence.models.lead import Lead
from app.persistence.repositories.activity_repository import LeadActivityRepository
from app.persistence.repositories.checkout_link_repository import CheckoutLinkRepository


@pytest.fixture
async def lead(db_session):
    lead = Lead(name="Ana Souza", email="ana@example.com")
    db_session.add(lead)
    await db_session.commit()
    return lead


class TestCreateForLead:
    """Tests for CheckoutLinkService.create_for_lead."""

    async def test_creates_pending_link_and_activity(self, db_session, gateway, lead):
        service = CheckoutLinkService(db_session, gateway)

        link = await service.create_for_lead(
            lead.id,
            description="Monthly plan",
            value=Decimal("150.00"),
            due_date=date(2026, 11, 1),
        )

        assert link.external_checkout_id == "chk_new"
        assert link.status == "pending"
        assert link.url == "https://asaas.test/c/chk_new"
        assert link.client_id is None

        links = await CheckoutLinkRepository(db_session).list_by_lead(lead.id)
        assert [row.id for row in links] == [link.id]

        activities = await LeadActivityRepository(db_session).list_for_lead(lead.id, type="checkout")
        assert len(activities) == 1
        assert activities[0].details["externalCheckoutId"] == "chk_new"

        request = gateway.create_checkout_link.await_args.args[0]
        assert request.email == "ana@example.com"
        assert request.success_url.endswith("/api/v1/checkout/success")
        assert request.notification_url.endswith("/api/v1/checkout/notify")

    async def test_unknown_lead(self, db_session, gateway):
        service = CheckoutLinkService(db_session, gateway)

        with pytest.raises(LeadNotFound):
            await service.create_for_lead(404, "Monthly plan", Decimal("10"), date(2026, 11, 1))
        gateway.create_checkout_link.assert_not_awaited()

    async def test_converted_lead_is_rejected(self, db_session, gateway, lead):
        lead.status = "converted"
        await db_session.commit()
        service = CheckoutLinkService(db_session, gateway)

        with pytest.raises(LeadAlreadyConverted):
            await service.create_for_lead(lead.id, "Monthly plan", Decimal("10"), date(2026, 11, 1))

    async def test_gateway_failure_saves_nothing(self, db_session, gateway, lead):
        gateway.create_checkout_link.side_effect = GatewayError("HTTP 400", status_code=400)
        service = CheckoutLinkService(db_session, gateway)

        with pytest.raises(GatewayError):
            await service.create_for_lead(lead.id, "Monthly plan", Decimal("10"), date(2026, 11, 1))

        result = await db_session.execute(select(func.count()).select_from(CheckoutLink))
        assert result.scalar_one() == 0


class TestCancel:
    """Tests for CheckoutLinkService.cancel."""

    async def test_cancels_open_checkout(self, db_session, gateway, lead_with_checkout):
        lead, link = lead_with_checkout
        service = CheckoutLinkService(db_session, gateway)

        canceled = await service.cancel("chk_1")

        assert canceled.id == link.id
        assert canceled.status == "canceled"
        gateway.cancel_checkout_link.assert_awaited_once_with("chk_1")

        activities = await LeadActivityRepository(db_session).list_for_lead(lead.id, type="checkout")
        assert [a.description for a in activities] == ["Checkout link canceled"]
        assert activities[0].details["externalCheckoutId"] == "chk_1"

    async def test_cancels_by_local_id(self, db_session, gateway, lead_with_checkout):
        _, link = lead_with_checkout
        service = CheckoutLinkService(db_session, gateway)

        canceled = await service.cancel(str(link.id))

        assert canceled.status == "canceled"
        gateway.cancel_checkout_link.assert_awaited_once_with("chk_1")

    async def test_unknown_checkout(self, db_session, gateway):
        service = CheckoutLinkService(db_session, gateway)

        with pytest.raises(CheckoutLinkNotFound):
            await service.cancel("chk_missing")
        gateway.cancel_checkout_link.assert_not_awaited()

    async def test_completed_checkout_is_rejected(self, db_session, gateway, lead_with_checkout):
        _, link = lead_with_checkout
        client = Client(name="Ana Souza", email="ana@example.com")
        db_session.add(client)
        await db_session.flush()
        link.client_id = client.id
        link.status = "completed"
        await db_session.commit()
        service = CheckoutLinkService(db_session, gateway)

        with pytest.raises(CheckoutAlreadyCompleted):
            await service.cancel("chk_1")
        gateway.cancel_checkout_link.assert_not_awaited()

    async def test_already_canceled_skips_gateway(self, db_session, gateway, lead_with_checkout):
        _, link = lead_with_checkout
        link.status = "canceled"
        await db_session.commit()
        service = CheckoutLinkService(db_session, gateway)

        result = await service.cancel("chk_1")

        assert result.status == "canceled"
        gateway.cancel_checkout_link.assert_not_awaited()

    async def test_gateway_failure_keeps_link_open(self, db_session, gateway, lead_with_checkout):
        lead, link = lead_with_checkout
        gateway.cancel_checkout_link.side_effect = GatewayError("HTTP 404", status_code=404)
        service = CheckoutLinkService(db_session, gateway)

        with pytest.raises(GatewayError):
            await service.cancel("chk_1")

        await db_session.refresh(link)
        assert link.status == "pending"
        activities = await LeadActivityRepository(db_session).list_for_lead(lead.id, type="checkout")
        assert activities == []


class TestGetByReference:
    """Tests for CheckoutLinkRepository.get_by_reference."""

    async def test_matches_gateway_id(self, db_session, lead_with_checkout):
        _, link = lead_with_checkout

        found = await CheckoutLinkRepository(db_session).get_by_reference("chk_1")

        assert found.id == link.id

    async def test_numeric_reference_matches_local_id(self, db_session, lead_with_checkout):
        _, link = lead_with_checkout

        found = await CheckoutLinkRepository(db_session).get_by_reference(str(link.id))

        assert found.external_checkout_id == "chk_1"

    async def test_gateway_id_wins_over_local_id(self, db_session, lead_with_checkout):
        lead, link = lead_with_checkout
        numeric = CheckoutLink(external_checkout_id=str(link.id), lead_id=lead.id, status="pending")
        db_session.add(numeric)
        await db_session.commit()

        found = await CheckoutLinkRepository(db_session).get_by_reference(str(link.id))

        assert found.id == numeric.id

    async def test_unknown_reference(self, db_session, lead_with_checkout):
        repo = CheckoutLinkRepository(db_session)

        assert await repo.get_by_reference("chk_missing") is None
        assert await repo.get_by_reference("999") is None

"""Tests for the unresolved checkout sweep."""

from sqlalchemy import func, select

import pytest

from app.domain.services.lead_sweep_service import LeadSweepService
from app.infrastructure.asaas_client import GatewayUnavailable
from app.persistence.models.checkout_link import CheckoutLink
from app.persistence.models.client import Client
from app.persistence.models.lead import Lead


async def add_lead_with_checkout(
    session, email: str, external_checkout_id: str, lead_status: str = "new", link_status: str = "pending"
) -> tuple[Lead, CheckoutLink]:
    lead = Lead(name=email.split("@")[0].title(), email=email, status=lead_status)
    session.add(lead)
    await session.flush()
    link = CheckoutLink(external_checkout_id=external_checkout_id, lead_id=lead.id, status=link_status)
    session.add(link)
    await session.flush()
    return lead, link


@pytest.fixture
async def sweep_data(db_session):
    """Leads in every state the sweep has to tell apart."""
    rows = {
        "failing": await add_lead_with_checkout(db_session, "carla@example.com", "chk_err"),
        "paid": await add_lead_with_checkout(db_session, "ana@example.com", "chk_1"),
        "open": await add_lead_with_checkout(db_session, "bruno@example.com", "chk_2"),
        "canceled": await add_lead_with_checkout(
            db_session, "dora@example.com", "chk_3", link_status="canceled"
        ),
        "converted": await add_lead_with_checkout(
            db_session, "edu@example.com", "chk_4", lead_status="converted"
        ),
    }
    await db_session.commit()
    return rows


@pytest.fixture
def gateway_states(gateway, completed_checkout, open_checkout):
    """Route gateway lookups by checkout id."""
    async def get_checkout_status(external_checkout_id):
        if external_checkout_id == "chk_err":
            raise GatewayUnavailable("Timeout calling Asaas GET /paymentLinks/chk_err")
        if external_checkout_id == "chk_1":
            return completed_checkout("chk_1", email="ana@example.com", checkout_status="CONFIRMED")
        return open_checkout(external_checkout_id)

    gateway.get_checkout_status.side_effect = get_checkout_status
    return gateway


class TestFindCandidates:
    """Tests for candidate selection."""

    async def test_skips_converted_leads_and_canceled_checkouts(self, db_session, gateway, sweep_data):
        service = LeadSweepService(db_session, gateway)

        candidates = await service.find_candidates()

        assert [c.external_checkout_id for c in candidates] == ["chk_err", "chk_1", "chk_2"]

    async def test_respects_limit(self, db_session, gateway, sweep_data):
        service = LeadSweepService(db_session, gateway)

        candidates = await service.find_candidates(limit=2)

        assert len(candidates) == 2


class TestSweep:
    """Tests for a full sweep run."""

    async def test_reports_conversions_pending_and_errors(
        self, db_session, gateway_states, sweep_data
    ):
        """Test a failing checkout does not stop the rest of the run."""
        service = LeadSweepService(db_session, gateway_states)

        report = await service.sweep()

        assert report.count == 1
        conversion = report.conversions[0]
        paid_lead, paid_link = sweep_data["paid"]
        assert conversion["leadId"] == paid_lead.id
        assert conversion["leadEmail"] == "ana@example.com"
        assert conversion["isNewClient"] is True
        assert conversion["checkout"] == {
            "id": paid_link.id,
            "externalId": "chk_1",
            "status": "completed",
        }

        assert [p["checkout"]["externalId"] for p in report.pending] == ["chk_2"]
        assert len(report.errors) == 1
        assert report.errors[0]["error"] == "GatewayUnavailable"
        assert report.errors[0]["checkout"]["externalId"] == "chk_err"

        client = (await db_session.execute(select(Client))).scalar_one()
        assert conversion["clientId"] == client.id

    async def test_second_run_only_revisits_unresolved(
        self, db_session, gateway_states, sweep_data
    ):
        service = LeadSweepService(db_session, gateway_states)

        await service.sweep()
        report = await service.sweep()

        assert report.count == 0
        assert len(report.pending) == 1
        assert len(report.errors) == 1
        assert (await db_session.execute(select(func.count()).select_from(Client))).scalar_one() == 1

    async def test_to_dict(self, db_session, gateway_states, sweep_data):
        report = await LeadSweepService(db_session, gateway_states).sweep()

        data = report.to_dict()

        assert data["count"] == 1
        assert set(data) == {"count", "conversions", "pending", "errors"}

"""Tests for the checkout success redirect and notification endpoints."""

from unittest.mock import AsyncMock, patch

import pytest

from app.domain.services.reconciliation_service import CheckoutNotFound, ReconciliationResult
from app.infrastructure.asaas_client import GatewayUnavailable
from app.settings import settings

SERVICE_PATH = "app.api.routes.checkout_callbacks.ReconciliationService"


def converted_result(**overrides) -> ReconciliationResult:
    data = {
        "pending": False,
        "external_checkout_id": "chk_1",
        "checkout_link_id": 1,
        "lead_id": 1,
        "client_id": 7,
        "is_new_client": True,
        "lead_converted": True,
        "checkout_status": "completed",
        "payment_recorded": True,
        "payment_created": True,
        "payment_status": "completed",
    }
    data.update(overrides)
    return ReconciliationResult(**data)


@pytest.fixture
def reconcile():
    """Patch the reconciliation service used by the callback routes."""
    with patch(SERVICE_PATH) as service_cls:
        service_cls.return_value.reconcile = AsyncMock(return_value=converted_result())
        yield service_cls.return_value.reconcile


class TestSuccessRedirect:
    """Tests for GET /checkout/success."""

    def test_redirects_after_conversion(self, api_client, reconcile):
        response = api_client.get(
            "/api/v1/checkout/success", params={"checkoutId": "chk_1"}, follow_redirects=False
        )

        assert response.status_code == 302
        assert response.headers["location"] == settings.checkout_success_url
        reconcile.assert_awaited_once_with("chk_1")

    def test_missing_checkout_id(self, api_client, reconcile):
        response = api_client.get("/api/v1/checkout/success")

        assert response.status_code == 400
        reconcile.assert_not_awaited()

    def test_form_not_completed(self, api_client, reconcile):
        reconcile.return_value = ReconciliationResult(pending=True, external_checkout_id="chk_1")

        response = api_client.get("/api/v1/checkout/success", params={"checkoutId": "chk_1"})

        assert response.status_code == 400
        assert response.json() == {"error": "form not completed"}

    def test_unknown_checkout(self, api_client, reconcile):
        reconcile.side_effect = CheckoutNotFound("chk_1")

        response = api_client.get("/api/v1/checkout/success", params={"checkoutId": "chk_1"})

        assert response.status_code == 404
        assert response.json() == {"error": "checkout not found"}

    def test_gateway_outage_is_generic(self, api_client, reconcile):
        reconcile.side_effect = GatewayUnavailable("Timeout calling Asaas GET /paymentLinks/chk_1")

        response = api_client.get("/api/v1/checkout/success", params={"checkoutId": "chk_1"})

        assert response.status_code == 500
        assert "paymentLinks" not in response.text

    def test_unexpected_error_hides_details(self, api_client, reconcile):
        reconcile.side_effect = RuntimeError("password=hunter2")

        response = api_client.get("/api/v1/checkout/success", params={"checkoutId": "chk_1"})

        assert response.status_code == 500
        assert "hunter2" not in response.text


class TestNotification:
    """Tests for POST /checkout/notify."""

    def test_acknowledges_conversion(self, api_client, reconcile):
        response = api_client.post(
            "/api/v1/checkout/notify", json={"checkoutId": "chk_1", "event": "CHECKOUT_PAID"}
        )

        assert response.status_code == 200
        assert response.json() == {"success": True, "pending": False, "checkoutStatus": "completed"}

    def test_acknowledges_pending(self, api_client, reconcile):
        reconcile.return_value = ReconciliationResult(
            pending=True, external_checkout_id="chk_1", checkout_status="pending"
        )

        response = api_client.post("/api/v1/checkout/notify", json={"checkoutId": "chk_1"})

        assert response.status_code == 200
        assert response.json()["pending"] is True

    @pytest.mark.parametrize("body", [{}, {"event": "CHECKOUT_PAID"}, {"checkoutId": ""}])
    def test_missing_checkout_id(self, api_client, reconcile, body):
        response = api_client.post("/api/v1/checkout/notify", json=body)

        assert response.status_code == 400
        reconcile.assert_not_awaited()

    def test_non_json_body(self, api_client, reconcile):
        response = api_client.post(
            "/api/v1/checkout/notify", content=b"checkoutId=chk_1",
            headers={"Content-Type": "application/x-www-form-urlencoded"},
        )

        assert response.status_code == 400

    def test_unknown_checkout(self, api_client, reconcile):
        reconcile.side_effect = CheckoutNotFound("chk_1")

        response = api_client.post("/api/v1/checkout/notify", json={"checkoutId": "chk_1"})

        assert response.status_code == 404

    def test_failure_asks_for_redelivery(self, api_client, reconcile):
        reconcile.side_effect = GatewayUnavailable("Timeout calling Asaas")

        response = api_client.post("/api/v1/checkout/notify", json={"checkoutId": "chk_1"})

        assert response.status_code == 500
        assert response.json()["details"] == "Timeout calling Asaas"

    def test_webhook_token_checked_when_configured(self, api_client, reconcile):
        with patch.object(settings, "asaas_webhook_token", "whsec"):
            rejected = api_client.post("/api/v1/checkout/notify", json={"checkoutId": "chk_1"})
            accepted = api_client.post(
                "/api/v1/checkout/notify",
                json={"checkoutId": "chk_1"},
                headers={"asaas-access-token": "whsec"},
            )

        assert rejected.status_code == 401
        assert accepted.status_code == 200
        reconcile.assert_awaited_once()

"""Asaas payment gateway API client.

Wraps the subset of the Asaas v3 REST API used by the checkout pipeline:
customer lookup/creation, payment link (checkout) creation and checkout
status lookup. Every call is a fresh HTTP round trip with a bounded timeout;
the client holds no state besides its configuration.

Responses are validated into pydantic models here so callers never handle
raw gateway JSON.

API docs: https://docs.asaas.com/reference
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Any

import httpx
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError

from app.settings import settings

logger = logging.getLogger(__name__)


class GatewayError(Exception):
    """Base exception for Asaas gateway errors."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class GatewayUnavailable(GatewayError):
    """Gateway unreachable, timed out or answered with a 5xx. Safe to retry."""
    pass


class GatewayCustomerCreateFailed(GatewayError):
    """Customer creation failed. Callers treat this as non-fatal."""
    pass


class CustomerProfile(BaseModel):
    """Identity data sent when creating a gateway customer."""

    name: str
    email: str
    phone: str | None = None
    document: str | None = None  # CPF/CNPJ


class CustomerCreated(BaseModel):
    """Result of a customer creation (or of finding an existing one)."""

    external_customer_id: str


class CheckoutCustomer(BaseModel):
    """Customer data filled in by the end user on the hosted checkout form."""

    model_config = ConfigDict(extra="ignore")

    id: str | None = None
    name: str
    email: str
    phone: str | None = Field(default=None, validation_alias=AliasChoices("phone", "mobilePhone"))
    document: str | None = Field(default=None, validation_alias=AliasChoices("document", "cpfCnpj"))


class CheckoutPayment(BaseModel):
    """A payment attempt attached to a checkout, whatever its outcome."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str
    status: str | None = None  # unmapped or missing codes degrade to pending downstream
    value: Decimal
    billing_type: str | None = Field(default=None, alias="billingType")
    due_date: str | None = Field(default=None, alias="dueDate")
    payment_date: date | None = Field(default=None, alias="paymentDate")
    invoice_url: str | None = Field(default=None, alias="invoiceUrl")
    description: str | None = None


class CheckoutStatus(BaseModel):
    """Current gateway-side state of one checkout session.

    ``customer`` is present once the end user completed the form, independent
    of payment completion. ``payment`` is present once at least one payment
    attempt exists, independent of its outcome.
    """

    external_checkout_id: str
    status: str
    customer: CheckoutCustomer | None = None
    payment: CheckoutPayment | None = None
    raw: dict[str, Any] = Field(default_factory=dict)

    @property
    def form_completed(self) -> bool:
        return self.customer is not None


class CheckoutLinkRequest(BaseModel):
    """Data needed to open a hosted checkout for a lead."""

    name: str
    email: str
    value: Decimal
    description: str
    due_date: date
    expiration_minutes: int = 30
    success_url: str | None = None
    notification_url: str | None = None


class CheckoutLinkCreated(BaseModel):
    """A newly created hosted checkout."""

    external_checkout_id: str
    url: str
    status: str


def parse_checkout_status(external_checkout_id: str, data: dict[str, Any]) -> CheckoutStatus:
    """Validate a raw payment link payload into a CheckoutStatus.

    Args:
        external_checkout_id: Checkout id the payload was fetched for
        data: Decoded JSON body returned by the gateway

    Returns:
        CheckoutStatus

    Raises:
        GatewayError: If the payload does not match the expected contract
    """
    if not isinstance(data, dict):
        raise GatewayError(f"Unexpected checkout payload type: {type(data).__name__}")

    status = data.get("status")
    if not status:
        # Payment links without an explicit status only expose the active flag
        status = "ACTIVE" if data.get("active", True) else "INACTIVE"

    # An unusable payment must not hide a filled-in form: drop it, keep the customer
    payment = None
    payment_data = data.get("payment")
    if payment_data:
        try:
            payment = CheckoutPayment.model_validate(payment_data)
        except ValidationError as e:
            logger.warning(
                f"[ASAAS] Ignoring malformed payment on checkout {external_checkout_id}: {e}",
                extra={"external_checkout_id": external_checkout_id},
            )

    try:
        return CheckoutStatus(
            external_checkout_id=data.get("id") or external_checkout_id,
            status=str(status),
            customer=data.get("customer") or None,
            payment=payment,
            raw=data,
        )
    except ValidationError as e:
        raise GatewayError(f"Malformed checkout payload for {external_checkout_id}: {e}") from e


class AsaasClient:
    """Typed client for the Asaas REST API.

    Credentials and base URL default to the global settings; pass them
    explicitly (or a custom httpx transport) to point the client elsewhere.
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize Asaas client.

        Args:
            api_key: Asaas API key (defaults to settings.asaas_api_key)
            base_url: API base URL (defaults to settings.asaas_api_url)
            timeout: Per-request timeout in seconds (defaults to settings.asaas_timeout_seconds)
            transport: Optional httpx transport, used by tests
        """
        self.api_key = api_key if api_key is not None else settings.asaas_api_key
        self.base_url = (base_url or settings.asaas_api_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.asaas_timeout_seconds
        self._transport = transport

        if not self.api_key:
            logger.warning("[ASAAS] API key not configured (ASAAS_API_KEY)")

    async def _request(
        self,
        method: str,
        path: str,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """Perform one API call and return the decoded JSON body.

        Raises:
            GatewayUnavailable: On timeout, transport failure or 5xx
            GatewayError: On any other non-2xx or a non-JSON body
        """
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                headers={"access_token": self.api_key, "Content-Type": "application/json"},
                transport=self._transport,
            ) as client:
                resp = await client.request(method, path, json=json, params=params)
        except httpx.TimeoutException as e:
            logger.warning(f"[ASAAS] Timeout on {method} {path}")
            raise GatewayUnavailable(f"Timeout calling Asaas {method} {path}") from e
        except httpx.TransportError as e:
            logger.warning(f"[ASAAS] Transport error on {method} {path}: {e}")
            raise GatewayUnavailable(f"Could not reach Asaas for {method} {path}: {e}") from e

        if resp.status_code >= 500:
            logger.warning(f"[ASAAS] HTTP {resp.status_code} on {method} {path}")
            raise GatewayUnavailable(
                f"Asaas returned HTTP {resp.status_code} for {method} {path}",
                status_code=resp.status_code,
            )
        if resp.status_code >= 400:
            logger.warning(
                f"[ASAAS] HTTP {resp.status_code} on {method} {path}",
                extra={"response_body": resp.text[:500]},
            )
            raise GatewayError(
                f"Asaas returned HTTP {resp.status_code} for {method} {path}: {resp.text[:200]}",
                status_code=resp.status_code,
            )

        try:
            return resp.json()
        except ValueError as e:
            raise GatewayError(f"Asaas returned a non-JSON body for {method} {path}") from e

    async def find_customer_by_document(self, document: str) -> str | None:
        """Look up an existing gateway customer by CPF/CNPJ.

        Returns:
            The customer id, or None if no customer has that document
        """
        data = await self._request("GET", "/customers", params={"cpfCnpj": document})
        if not isinstance(data, dict):
            return None
        customers = data.get("data") or []
        if not customers:
            return None
        return customers[0].get("id")

    async def create_customer(self, profile: CustomerProfile) -> CustomerCreated:
        """Create a customer, reusing an existing one with the same document.

        Args:
            profile: Customer identity data

        Returns:
            CustomerCreated with the gateway customer id

        Raises:
            GatewayCustomerCreateFailed: On any failure
        """
        if profile.document:
            try:
                existing_id = await self.find_customer_by_document(profile.document)
            except GatewayError as e:
                logger.info(f"[ASAAS] Customer lookup by document failed, creating anyway: {e}")
                existing_id = None
            if existing_id:
                logger.info(f"[ASAAS] Reusing existing customer {existing_id}")
                return CustomerCreated(external_customer_id=existing_id)

        payload: dict[str, Any] = {"name": profile.name, "email": profile.email}
        if profile.phone:
            payload["phone"] = profile.phone
        if profile.document:
            payload["cpfCnpj"] = profile.document

        try:
            data = await self._request("POST", "/customers", json=payload)
        except GatewayError as e:
            raise GatewayCustomerCreateFailed(
                f"Could not create Asaas customer for {profile.email}: {e}",
                status_code=e.status_code,
            ) from e

        customer_id = data.get("id") if isinstance(data, dict) else None
        if not customer_id:
            raise GatewayCustomerCreateFailed(
                f"Asaas customer response for {profile.email} has no id"
            )

        logger.info(f"[ASAAS] Created customer {customer_id} for {profile.email}")
        return CustomerCreated(external_customer_id=customer_id)

    async def get_checkout_status(self, external_checkout_id: str) -> CheckoutStatus:
        """Fetch the current state of a checkout (payment link).

        Raises:
            GatewayUnavailable: Transient failure, safe to retry
            GatewayError: Rejected request or malformed payload
        """
        data = await self._request("GET", f"/paymentLinks/{external_checkout_id}")
        status = parse_checkout_status(external_checkout_id, data)
        logger.info(
            f"[ASAAS] Checkout {external_checkout_id} status={status.status}",
            extra={
                "external_checkout_id": external_checkout_id,
                "has_customer": status.customer is not None,
                "has_payment": status.payment is not None,
            },
        )
        return status

    async def get_payment(self, external_payment_id: str) -> CheckoutPayment | None:
        """Fetch the full charge behind a checkout payment.

        Returns:
            CheckoutPayment, or None if the gateway does not know the charge

        Raises:
            GatewayUnavailable: Transient failure, safe to retry
            GatewayError: Rejected request or malformed payload
        """
        try:
            data = await self._request("GET", f"/payments/{external_payment_id}")
        except GatewayError as e:
            if e.status_code == 404:
                return None
            raise

        try:
            return CheckoutPayment.model_validate(data)
        except ValidationError as e:
            raise GatewayError(f"Malformed payment payload for {external_payment_id}: {e}") from e

    async def cancel_checkout_link(self, external_checkout_id: str) -> None:
        """Deactivate a hosted checkout so it no longer accepts payments.

        Raises:
            GatewayError: If the gateway refuses or fails the cancellation
        """
        await self._request("DELETE", f"/paymentLinks/{external_checkout_id}")
        logger.info(f"[ASAAS] Canceled payment link {external_checkout_id}")

    async def create_checkout_link(self, request: CheckoutLinkRequest) -> CheckoutLinkCreated:
        """Create a hosted single-charge checkout.

        Raises:
            GatewayError: If the gateway rejects the link or answers without an id/url
        """
        payload: dict[str, Any] = {
            "name": request.description,
            "description": request.description,
            "customer": {"name": request.name, "email": request.email},
            "value": float(request.value),
            "billingType": "UNDEFINED",
            "chargeType": "DETACHED",
            "dueDateLimitDays": max((request.due_date - date.today()).days, 1),
            "maxInstallmentCount": 1,
            "showPaymentTypes": ["BOLETO", "CREDIT_CARD", "PIX"],
            "expirationTime": request.expiration_minutes,
        }
        callback: dict[str, Any] = {}
        if request.success_url:
            callback["successUrl"] = request.success_url
            callback["autoRedirect"] = True
        if request.notification_url:
            callback["notificationUrl"] = request.notification_url
        if callback:
            payload["callback"] = callback

        data = await self._request("POST", "/paymentLinks", json=payload)
        if not isinstance(data, dict) or not data.get("id") or not data.get("url"):
            raise GatewayError("Asaas payment link response is missing id or url")

        logger.info(f"[ASAAS] Created payment link {data['id']} for {request.email}")
        return CheckoutLinkCreated(
            external_checkout_id=data["id"],
            url=data["url"],
            status=str(data.get("status") or "ACTIVE"),
        )


# Singleton instance
_asaas_client: AsaasClient | None = None


def get_asaas_client() -> AsaasClient:
    """Get or create Asaas client singleton."""
    global _asaas_client
    if _asaas_client is None:
        _asaas_client = AsaasClient()
    return _asaas_client

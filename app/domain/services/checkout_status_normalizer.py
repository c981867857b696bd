"""Maps Asaas status codes onto the closed checkout and payment status taxonomies."""

import logging

from app.persistence.models.payment import PaymentStatus

logger = logging.getLogger(__name__)

# Payment status codes, as reported on charges and checkout payments
PAYMENT_STATUS_MAP: dict[str, PaymentStatus] = {
    "CONFIRMED": PaymentStatus.COMPLETED,
    "RECEIVED": PaymentStatus.COMPLETED,
    "PAID": PaymentStatus.COMPLETED,
    "OVERDUE": PaymentStatus.PENDING,
    "CANCELED": PaymentStatus.FAILED,
    "DECLINED": PaymentStatus.FAILED,
    "FAILED": PaymentStatus.FAILED,
    "REFUNDED": PaymentStatus.REFUNDED,
}

CHECKOUT_PENDING = "pending"
CHECKOUT_CANCELED = "canceled"
CHECKOUT_EXPIRED = "expired"

# Codes only a checkout session (payment link) reports; checked before the payment map
CHECKOUT_STATUS_MAP: dict[str, str] = {
    "ACTIVE": CHECKOUT_PENDING,
    "PENDING": CHECKOUT_PENDING,
    "OPEN": CHECKOUT_PENDING,
    "CANCELED": CHECKOUT_CANCELED,
    "CANCELLED": CHECKOUT_CANCELED,
    "DELETED": CHECKOUT_CANCELED,
    "EXPIRED": CHECKOUT_EXPIRED,
    "INACTIVE": CHECKOUT_EXPIRED,
}

# Checkout states the sweep never revisits
TERMINAL_CHECKOUT_STATUSES = frozenset({CHECKOUT_CANCELED})


def normalize_payment_status(raw_status: str | None) -> PaymentStatus:
    """Translate a gateway payment status into the payment taxonomy.

    Unknown codes degrade to pending with a warning instead of raising, so a
    new provider status can never abort a reconciliation.

    Args:
        raw_status: Provider status string (any case), possibly None

    Returns:
        Normalized PaymentStatus
    """
    code = (raw_status or "").strip().upper()
    status = PAYMENT_STATUS_MAP.get(code)
    if status is None:
        logger.warning(
            f"[NORMALIZER] Unmapped payment status {raw_status!r}, treating as pending",
            extra={"raw_status": raw_status, "normalizer_fallback": True},
        )
        return PaymentStatus.PENDING
    return status


def normalize_checkout_status(raw_status: str | None) -> str:
    """Translate a gateway checkout status into the checkout taxonomy.

    Returns one of pending, completed, failed, refunded, canceled, expired.
    """
    code = (raw_status or "").strip().upper()
    if code in CHECKOUT_STATUS_MAP:
        return CHECKOUT_STATUS_MAP[code]
    return normalize_payment_status(raw_status).value

"""Tests for gateway status normalization."""

import logging

import pytest

from app.domain.services.checkout_status_normalizer import (
    TERMINAL_CHECKOUT_STATUSES,
    normalize_checkout_status,
    normalize_payment_status,
)
from app.persistence.models.payment import PaymentStatus


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("CONFIRMED", PaymentStatus.COMPLETED),
        ("RECEIVED", PaymentStatus.COMPLETED),
        ("PAID", PaymentStatus.COMPLETED),
        ("OVERDUE", PaymentStatus.PENDING),
        ("CANCELED", PaymentStatus.FAILED),
        ("DECLINED", PaymentStatus.FAILED),
        ("FAILED", PaymentStatus.FAILED),
        ("REFUNDED", PaymentStatus.REFUNDED),
    ],
)
def test_known_payment_statuses(raw, expected):
    assert normalize_payment_status(raw) == expected


def test_payment_status_is_case_insensitive():
    assert normalize_payment_status("received") == PaymentStatus.COMPLETED
    assert normalize_payment_status("  Confirmed ") == PaymentStatus.COMPLETED


def test_unknown_payment_status_falls_back_to_pending(caplog):
    """An unmapped code never raises and is logged as a fallback."""
    with caplog.at_level(logging.WARNING):
        assert normalize_payment_status("AWAITING_RISK_ANALYSIS") == PaymentStatus.PENDING

    fallback = [r for r in caplog.records if getattr(r, "normalizer_fallback", False)]
    assert len(fallback) == 1
    assert fallback[0].raw_status == "AWAITING_RISK_ANALYSIS"


def test_missing_payment_status_falls_back_to_pending():
    assert normalize_payment_status(None) == PaymentStatus.PENDING
    assert normalize_payment_status("") == PaymentStatus.PENDING


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("ACTIVE", "pending"),
        ("PENDING", "pending"),
        ("CANCELED", "canceled"),
        ("DELETED", "canceled"),
        ("EXPIRED", "expired"),
        ("INACTIVE", "expired"),
        ("CONFIRMED", "completed"),
        ("RECEIVED", "completed"),
        ("REFUNDED", "refunded"),
        ("DECLINED", "failed"),
    ],
)
def test_checkout_statuses(raw, expected):
    assert normalize_checkout_status(raw) == expected


def test_unknown_checkout_status_is_pending():
    assert normalize_checkout_status("SOMETHING_NEW") == "pending"


def test_only_canceled_is_terminal():
    assert TERMINAL_CHECKOUT_STATUSES == frozenset({"canceled"})

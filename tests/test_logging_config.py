"""Tests for structured logging."""

import json
import logging

from app.core.request_context import clear_request_id, set_request_id
from app.logging_config import ContextFilter, JSONFormatter


def make_record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="app.test", level=logging.INFO, pathname=__file__, lineno=1,
        msg="[RECONCILE] Checkout %s reconciled", args=("chk_1",), exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_formats_message_and_extras():
    record = make_record(external_checkout_id="chk_1", lead_id=3)

    data = json.loads(JSONFormatter().format(record))

    assert data["message"] == "[RECONCILE] Checkout chk_1 reconciled"
    assert data["severity"] == "INFO"
    assert data["external_checkout_id"] == "chk_1"
    assert data["lead_id"] == 3


def test_request_id_is_stamped():
    record = make_record()
    set_request_id("req-42")
    try:
        ContextFilter().filter(record)
    finally:
        clear_request_id()

    data = json.loads(JSONFormatter().format(record))

    assert data["request_id"] == "req-42"


def test_no_request_id_outside_requests():
    record = make_record()
    ContextFilter().filter(record)

    data = json.loads(JSONFormatter().format(record))

    assert "request_id" not in data

import asyncio
import json

import pytest

from nl_address.lookup.errors import LookupHTTPError, LookupPayloadError
from nl_address.utils.error_classifier import ErrorClassifier


@pytest.mark.parametrize(
    "error, code",
    [
        (LookupHTTPError(404), "HTTP_CLIENT"),
        (LookupHTTPError(429), "RATE_LIMIT"),
        (LookupHTTPError(502), "HTTP_SERVER"),
        (LookupPayloadError("expected an object"), "PAYLOAD"),
        (json.JSONDecodeError("Expecting value", "<html>", 0), "PAYLOAD"),
        (asyncio.TimeoutError(), "NETWORK_TIMEOUT"),
        (Exception("Timeout 10000ms exceeded."), "NETWORK_TIMEOUT"),
        (Exception("net::ERR_NAME_NOT_RESOLVED at https://json.api-postcode.nl"), "DNS"),
        (Exception("certificate verify failed"), "TLS"),
        (Exception("connect ECONNREFUSED 127.0.0.1:443"), "CONNECTION"),
        (Exception("Target page, context or browser has been closed"), "PAGE_CLOSED"),
        (RuntimeError("something odd"), "UNKNOWN"),
    ],
)
def test_classify(error, code):
    assert ErrorClassifier.classify(error) == code


def test_cancellation_has_its_own_code():
    detail = ErrorClassifier.classify_detail(asyncio.CancelledError())
    assert detail["code"] == "CANCELLED"
    assert detail["retryable"] is False


def test_classify_detail_marks_retryable_and_status():
    detail = ErrorClassifier.classify_detail(LookupHTTPError(503))
    assert detail == {
        "code": "HTTP_SERVER",
        "retryable": True,
        "error_type": "LookupHTTPError",
        "http_status": 503,
    }

    detail = ErrorClassifier.classify_detail(LookupPayloadError("bad"))
    assert detail["retryable"] is False
    assert "http_status" not in detail


def test_http_error_message():
    error = LookupHTTPError(500)
    assert error.status == 500
    assert str(error) == "Address lookup failed: HTTP 500"

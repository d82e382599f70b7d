import logging

from nl_address.security.log_sanitizer import (
    LogSanitizer,
    SanitizingHandler,
    sanitize_for_log,
    setup_sanitized_logging,
)
from nl_address.utils.secure_logger import SecureLogger


class ListHandler(logging.Handler):
    def __init__(self):
        super().__init__()
        self.messages = []

    def emit(self, record):
        self.messages.append(record.getMessage())


def test_postal_code_and_query_signature_are_masked():
    s = LogSanitizer()
    assert s.sanitize_string("Looking up 1234AB|10 for group home") == "Looking up ****XX for group home"
    assert s.sanitize_string("postcode 1234 AB") == "postcode ****XX"


def test_lookup_url_query_is_masked():
    s = LogSanitizer()
    out = s.sanitize_string("GET https://json.api-postcode.nl?postcode=1234AB&huisnummer=10 failed")
    assert out == "GET https://json.api-postcode.nl?***QUERY_REDACTED*** failed"


def test_short_or_plain_text_is_untouched():
    s = LogSanitizer()
    assert s.sanitize_string("Browser closed.") == "Browser closed."
    assert s.sanitize_string("ok") == "ok"


def test_json_address_values_are_masked():
    s = LogSanitizer()
    out = s.sanitize_string('payload {"street": "Mainstreet", "houseNumber": "10"}')
    assert '"street": "***REDACTED***"' in out
    assert "Mainstreet" not in out


def test_dict_keys_are_masked_recursively():
    data = {"postalCode": "1234AB", "nested": {"city": "Example"}, "items": ["token=abcdefgh1234"], "count": 2}
    out = sanitize_for_log(data)
    assert out["postalCode"] == "***REDACTED***"
    assert out["nested"]["city"] == "***REDACTED***"
    assert out["items"] == ["token=***REDACTED***"]
    assert out["count"] == 2


def test_sanitizing_handler_masks_formatted_message():
    inner = ListHandler()
    handler = SanitizingHandler(inner)
    log = logging.getLogger("tests.sanitizer.handler")
    log.propagate = False
    log.addHandler(handler)
    log.setLevel(logging.INFO)
    try:
        log.info("Lookup for %s failed", "1234AB")
    finally:
        log.removeHandler(handler)
    assert inner.messages == ["Lookup for ****XX failed"]


def test_setup_sanitized_logging_does_not_double_wrap():
    log = logging.getLogger("tests.sanitizer.setup")
    log.handlers.clear()
    log.addHandler(ListHandler())
    try:
        setup_sanitized_logging("tests.sanitizer.setup")
        setup_sanitized_logging("tests.sanitizer.setup")
        assert len(log.handlers) == 1
        assert isinstance(log.handlers[0], SanitizingHandler)
        assert not isinstance(log.handlers[0].handler, SanitizingHandler)
    finally:
        log.handlers.clear()


def test_secure_logger_masks_message_and_extra():
    inner = ListHandler()
    log = logging.getLogger("tests.sanitizer.secure")
    log.propagate = False
    log.addHandler(inner)
    log.setLevel(logging.DEBUG)
    try:
        SecureLogger(log).warning("Lookup 1234AB|10 failed", {"city": "Example", "attempt": 1})
    finally:
        log.removeHandler(inner)
    assert inner.messages == ['Lookup ****XX failed | Extra: {"city": "***REDACTED***", "attempt": 1}']

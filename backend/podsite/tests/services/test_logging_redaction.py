import logging

from podsite.core.logging import RedactFilter, configure_logging, redact


def _record(msg, *args):
    return logging.LogRecord("podsite.test", logging.INFO, __file__, 1, msg, args, None)


def test_emails_and_tokens_are_masked():
    record = _record("login by %s with Bearer abc.def-ghi and sk-%s", "ada@example.com", "A" * 20)
    assert RedactFilter().filter(record) is True
    message = record.getMessage()
    assert "ada@example.com" not in message
    assert "abc.def-ghi" not in message
    assert "sk-AAAA" not in message
    assert "<redacted-email>" in message


def test_session_cookie_values_are_masked():
    record = _record("cookie header admin_session=eyJhbGciOi.payload.sig")
    RedactFilter().filter(record)
    assert "eyJhbGciOi" not in record.getMessage()


def test_plain_messages_untouched():
    record = _record("[peaks] backfilled episode=%s", "1234")
    RedactFilter().filter(record)
    assert record.args == ("1234",)
    assert record.getMessage() == "[peaks] backfilled episode=1234"


def test_redact_helper_masks_inline_text():
    assert redact("mail me at a.b@c.io") == "mail me at <redacted-email>"


def test_configure_logging_accepts_level_names_and_is_idempotent():
    root = logging.getLogger()
    configure_logging("debug")
    configure_logging("warning")
    try:
        assert root.level == logging.WARNING
        ours = [h for h in root.handlers if getattr(h, "_podsite_handler", False)]
        assert len(ours) == 1
        assert sum(isinstance(f, RedactFilter) for f in root.filters) == 1
    finally:
        configure_logging("INFO")


def test_unknown_level_name_falls_back_to_info():
    configure_logging("chatty")
    assert logging.getLogger().level == logging.INFO

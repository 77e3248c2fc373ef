import structlog

from app.config import Config, config
from app.logging_config import bind_message_context, redact_message_bodies


def _set(monkeypatch, name, value):
    for target in (Config, config):
        monkeypatch.setattr(target, name, value, raising=False)


def test_message_bodies_redacted_when_disabled(monkeypatch):
    _set(monkeypatch, "LOG_MESSAGE_BODIES", False)

    event = redact_message_bodies(None, "info", {
        "event": "webhook_message_received",
        "message_body": "my card number is 4111",
        "reply_text": "Thanks!",
        "from_number": "+15551234567",
    })

    assert event["message_body"] == "[redacted]"
    assert event["reply_text"] == "[redacted]"
    assert event["from_number"] == "+15551234567"


def test_message_bodies_truncated_when_enabled(monkeypatch):
    _set(monkeypatch, "LOG_MESSAGE_BODIES", True)
    _set(monkeypatch, "LOG_MESSAGE_MAX_CHARS", 5)

    event = redact_message_bodies(None, "info", {"message_body": "hello world", "reply_text": "hi"})

    assert event["message_body"] == "hello…"
    assert event["reply_text"] == "hi"


def test_events_without_bodies_are_untouched(monkeypatch):
    _set(monkeypatch, "LOG_MESSAGE_BODIES", False)
    event = {"event": "application_starting", "version": "1.0.0"}
    assert redact_message_bodies(None, "info", dict(event)) == event


def test_bind_message_context_replaces_previous_message():
    bind_message_context(channel="whatsapp", from_number="+1555", message_sid="SM1")
    bind_message_context(channel="simulator", from_number="+1666", message_sid=None)

    context = structlog.contextvars.get_contextvars()
    assert context == {"channel": "simulator", "from_number": "+1666"}

    structlog.contextvars.clear_contextvars()

"""
Structured logging for the responder.

Every inbound message gets its own log context (channel, sender, Twilio
MessageSid) bound through structlog contextvars, so all events logged while
handling it carry the same identifiers. Message text is customer data and is
only emitted when LOG_MESSAGE_BODIES is on, truncated to LOG_MESSAGE_MAX_CHARS.
"""

import logging
import sys
from typing import Any, MutableMapping

import structlog

from app.config import config

# Event keys that carry customer text.
MESSAGE_BODY_KEYS = ("message_body", "reply_text")

QUIET_LOGGERS = ("httpx", "httpcore", "openai", "twilio", "multipart")


def redact_message_bodies(logger: Any, method_name: str, event_dict: MutableMapping[str, Any]):
    """structlog processor: drop or truncate message text fields."""
    for key in MESSAGE_BODY_KEYS:
        if key not in event_dict:
            continue
        if not config.LOG_MESSAGE_BODIES:
            event_dict[key] = "[redacted]"
            continue

        text = str(event_dict[key])
        max_chars = config.LOG_MESSAGE_MAX_CHARS
        if max_chars > 0 and len(text) > max_chars:
            event_dict[key] = text[:max_chars] + "…"
    return event_dict


def bind_message_context(**values: Any) -> None:
    """Start a fresh log context for one inbound message. None values are skipped."""
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(**{k: v for k, v in values.items() if v is not None})


def _renderer():
    if config.DEBUG:
        return structlog.dev.ConsoleRenderer()
    return structlog.processors.JSONRenderer(ensure_ascii=False)


def configure_logging():
    """
    Configure stdlib logging plus structlog.

    JSON lines on stdout unless DEBUG is on, in which case the console
    renderer is used.
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, config.LOG_LEVEL, logging.INFO),
    )
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            redact_message_bodies,
            structlog.processors.format_exc_info,
            _renderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str = None) -> Any:
    """
    Get a structured logger instance.

    Usage:
        logger = get_logger(__name__)
        logger.info("agent_reply_generated", classification="lead")
    """
    return structlog.get_logger(name)


configure_logging()

logger = get_logger("whatsapp_responder")

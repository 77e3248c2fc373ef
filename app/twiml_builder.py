"""TwiML generation utilities for WhatsApp message replies.

Handles:
- XML escaping for all dynamic content
- Wrapping the agent reply in a <Message> response
"""

import xml.sax.saxutils as saxutils

# saxutils.escape always covers &, < and >; quotes need explicit entities.
_QUOTE_ENTITIES = {
    '"': "&quot;",
    "'": "&apos;",
}


def escape_for_twiml(value: str) -> str:
    """
    Escape the five reserved XML characters.

    & -> &amp;   < -> &lt;   > -> &gt;   " -> &quot;   ' -> &apos;
    """
    return saxutils.escape(value, _QUOTE_ENTITIES)


def build_message_twiml(body: str) -> str:
    """
    Build the TwiML reply for an inbound WhatsApp message.

    Args:
        body: Reply text (unescaped)

    Returns:
        TwiML XML string with a single <Message>
    """
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        f"<Response><Message>{escape_for_twiml(body)}</Message></Response>"
    )

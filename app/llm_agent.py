"""
LLM-based WhatsApp reply generator using the OpenAI API.
Turns an inbound message plus the agent configuration into a structured reply.
The model is treated as optional: any failure resolves to the fallback reply.
"""

import json
import time
from typing import Any, Optional

from app.agent_config import AgentConfig, get_agent_config
from app.logging_config import get_logger
from app.metrics import agent_replies_total, agent_reply_duration
from app.model_client import ChatModel
from app.models import AgentReply, AgentReplyInput, MessageClassification

logger = get_logger(__name__)

MAX_REPLY_CHARS = 1200
FALLBACK_CONFIDENCE = 0.35
DEFAULT_CONFIDENCE = 0.5

REPLY_SHAPE = """{
  "reply": string,
  "classification": "lead" | "support" | "pricing" | "off-hours" | "not-understood",
  "confidence": number between 0 and 1,
  "escalated": boolean
}"""


def _format_service_catalog(agent_config: AgentConfig) -> str:
    entries = []
    for index, service in enumerate(agent_config.services, start=1):
        entry = f"{index}. {service.name}\nSummary: {service.description}"
        if service.response_highlights:
            highlights = "\n- ".join(service.response_highlights)
            entry += f"\nHighlights:\n- {highlights}"
        entries.append(entry)
    return "\n\n".join(entries)


def build_system_prompt(agent_config: AgentConfig) -> str:
    """System-role prompt: company identity, rules and the service catalog."""
    return "\n".join([
        f'You are the "{agent_config.company_name}" WhatsApp agent.',
        f"About the company: {agent_config.company_description}",
        f"Primary mission: respond to inbound client WhatsApp messages with a {agent_config.tone} tone.",
        f"Business hours: {agent_config.business_hours}.",
        "If the client asks for something outside of these services or it's outside business hours, "
        "use the fallback messaging.",
        f"Escalation email: {agent_config.escalation_email or 'not provided'}.",
        "When answering, always do the following:",
        "- Greet clients by name if they provide it or if it's available in metadata.",
        "- Summarize the client's request in one sentence to confirm understanding.",
        "- Present the most relevant service with specifics from the highlights.",
        "- Offer a clear next step (booking a call, requesting details, etc.).",
        f"- Keep replies under {MAX_REPLY_CHARS} characters. Use short paragraphs and bullet points when helpful.",
        "- If escalation is required, clearly state that a human teammate will follow up, "
        "and mention the escalation email if present.",
        "- Never invent prices or policies that were not provided.",
        "- If unsure, fall back to the generic fallback message.",
        "",
        "Service catalog:",
        _format_service_catalog(agent_config),
    ])


def build_user_prompt(reply_input: AgentReplyInput, agent_config: AgentConfig) -> str:
    """User-role prompt: the message itself, the output shape and the fallbacks."""
    lines = [
        f"Incoming message body:\n{reply_input.body}",
        f"Client phone number: {reply_input.sender}",
    ]
    if reply_input.timestamp:
        lines.append(f"Received at: {reply_input.timestamp}")

    lines.extend([
        "",
        "Return a JSON object with the following shape:",
        REPLY_SHAPE,
        "Use the fallback messages when appropriate:",
        f"- Generic fallback: {agent_config.fallbacks.generic}",
        f"- Outside hours fallback: {agent_config.fallbacks.outside_hours}",
        f"- Escalation fallback: {agent_config.fallbacks.escalation}",
    ])
    return "\n".join(lines)


def build_fallback_reply(reply_input: AgentReplyInput, agent_config: AgentConfig) -> AgentReply:
    """Deterministic reply used whenever the model is unavailable or fails."""
    return AgentReply(
        reply=f"{agent_config.fallbacks.generic}\n\n(Automated reply to {reply_input.sender})",
        classification=MessageClassification.NOT_UNDERSTOOD,
        confidence=FALLBACK_CONFIDENCE,
        escalated=True,
    )


def _coerce_classification(value: Any) -> MessageClassification:
    try:
        return MessageClassification(value)
    except (TypeError, ValueError):
        return MessageClassification.NOT_UNDERSTOOD


def _coerce_confidence(value: Any) -> float:
    # bool is an int subclass; "true" is not a confidence.
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return DEFAULT_CONFIDENCE
    if value != value:  # NaN
        return DEFAULT_CONFIDENCE
    return max(0.0, min(float(value), 1.0))


def parse_model_reply(raw: str, agent_config: AgentConfig) -> AgentReply:
    """
    Parse and sanitize the model's JSON content.

    Raises:
        ValueError: content is not a JSON object (json.JSONDecodeError included)
    """
    parsed = json.loads(raw)
    if not isinstance(parsed, dict):
        raise ValueError(f"Expected a JSON object, got {type(parsed).__name__}")

    reply_text = parsed.get("reply")
    reply_text = reply_text.strip() if isinstance(reply_text, str) else ""

    return AgentReply(
        reply=reply_text or agent_config.fallbacks.generic,
        classification=_coerce_classification(parsed.get("classification")),
        confidence=_coerce_confidence(parsed.get("confidence")),
        escalated=bool(parsed.get("escalated")),
    )


def _record(reply: AgentReply, source: str) -> AgentReply:
    agent_replies_total.labels(classification=reply.classification.value, source=source).inc()
    return reply


def generate_agent_reply(
    reply_input: AgentReplyInput,
    model: ChatModel,
    agent_config: Optional[AgentConfig] = None,
) -> AgentReply:
    """
    Generate the agent's reply to one inbound message.

    Args:
        reply_input: Normalized inbound message
        model: Chat model capability (may be unavailable)
        agent_config: Resolved configuration; read from the environment if omitted

    Returns:
        AgentReply. Never raises: every failure becomes the fallback reply.
    """
    agent_config = agent_config or get_agent_config()

    if not model.available:
        return _record(build_fallback_reply(reply_input, agent_config), "fallback")

    started = time.perf_counter()
    try:
        raw = model.complete_json(
            model=agent_config.openai_model,
            temperature=agent_config.temperature,
            system_prompt=build_system_prompt(agent_config),
            user_prompt=build_user_prompt(reply_input, agent_config),
        )
        if not raw:
            logger.warning("agent_reply_empty_content", sender=reply_input.sender)
            return _record(build_fallback_reply(reply_input, agent_config), "fallback")

        reply = parse_model_reply(raw, agent_config)
    except Exception as e:
        logger.error(
            "agent_reply_failed",
            sender=reply_input.sender,
            error=str(e),
            error_type=type(e).__name__,
        )
        return _record(build_fallback_reply(reply_input, agent_config), "fallback")
    finally:
        agent_reply_duration.observe(time.perf_counter() - started)

    logger.info(
        "agent_reply_generated",
        sender=reply_input.sender,
        classification=reply.classification.value,
        confidence=reply.confidence,
        escalated=reply.escalated,
        reply_text=reply.reply,
    )
    return _record(reply, "model")

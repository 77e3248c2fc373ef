"""Data models for the WhatsApp auto-responder."""

from enum import Enum
from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field

DEFAULT_SIMULATED_SENDER = "whatsapp:+15555550123"


class MessageClassification(str, Enum):
    """How the agent categorised an inbound message."""
    LEAD = "lead"
    SUPPORT = "support"
    PRICING = "pricing"
    OFF_HOURS = "off-hours"
    NOT_UNDERSTOOD = "not-understood"


class AgentReplyInput(BaseModel):
    """Normalized inbound message, whatever channel it came from."""
    model_config = ConfigDict(populate_by_name=True)

    body: str
    sender: str = Field(alias="from")
    timestamp: Optional[str] = None


class AgentReply(BaseModel):
    """Structured reply returned to the calling channel."""
    reply: str
    classification: MessageClassification
    confidence: float = Field(ge=0.0, le=1.0)
    escalated: bool


class SimulateRequest(BaseModel):
    """Request model for /simulate endpoint."""
    model_config = ConfigDict(populate_by_name=True)

    message: str = ""
    sender: str = Field(default=DEFAULT_SIMULATED_SENDER, alias="from")

    @classmethod
    def from_payload(cls, payload: Any) -> "SimulateRequest":
        """Build from a loosely typed JSON body: nulls take defaults, scalars become strings."""
        if not isinstance(payload, dict):
            payload = {}

        message = payload.get("message")
        sender = payload.get("from")
        return cls(
            message="" if message is None else str(message),
            sender=DEFAULT_SIMULATED_SENDER if sender is None else str(sender),
        )


class ErrorResponse(BaseModel):
    error: str

"""Prometheus metrics."""

from prometheus_client import Counter, Histogram

agent_replies_total = Counter(
    "agent_replies_total",
    "Agent replies produced",
    ["classification", "source"],
)
agent_reply_duration = Histogram("agent_reply_duration_seconds", "Time spent generating an agent reply")
webhook_requests_total = Counter("webhook_requests_total", "WhatsApp webhook requests", ["status"])

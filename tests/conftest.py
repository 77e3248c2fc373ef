import json
from unittest.mock import MagicMock

import pytest

AGENT_ENV_VARS = [
    "COMPANY_NAME",
    "COMPANY_DESCRIPTION",
    "COMPANY_SERVICES",
    "AGENT_TONE",
    "AGENT_ESCALATION_EMAIL",
    "AGENT_BUSINESS_HOURS",
    "AGENT_FALLBACK_GENERIC",
    "AGENT_FALLBACK_OUTSIDE_HOURS",
    "AGENT_FALLBACK_ESCALATION",
    "OPENAI_MODEL",
    "AGENT_TEMPERATURE",
]


@pytest.fixture(autouse=True)
def _safe_test_config(monkeypatch):
    """Force deterministic, offline-safe config for tests.

    The repo loads .env on import; these overrides keep the agent in
    fallback-only mode and the webhook in non-production mode unless a
    test explicitly opts in.
    """
    from app.config import config, Config
    from app.main import app
    from app.model_client import get_chat_model

    for name in AGENT_ENV_VARS:
        monkeypatch.delenv(name, raising=False)

    overrides = {
        "OPENAI_API_KEY": "",
        "WHATSAPP_WEBHOOK_SECRET": "",
        "APP_ENV": "development",
        "BASE_URL": "",
    }
    for name, value in overrides.items():
        monkeypatch.setattr(Config, name, value, raising=False)
        # Keep the instance in sync for any code that reads instance attributes directly.
        monkeypatch.setattr(config, name, value, raising=False)

    get_chat_model.cache_clear()
    yield config
    app.dependency_overrides.clear()
    get_chat_model.cache_clear()


def make_openai_client(content=None, side_effect=None, choices=True):
    """Mock OpenAI client whose chat completion returns `content`."""
    client = MagicMock()
    response = MagicMock()
    if choices:
        response.choices = [MagicMock()]
        response.choices[0].message.content = content
    else:
        response.choices = []

    if side_effect is not None:
        client.chat.completions.create.side_effect = side_effect
    else:
        client.chat.completions.create.return_value = response
    return client


@pytest.fixture
def model_reply():
    """Build a JSON model reply payload."""
    def _build(**overrides):
        payload = {
            "reply": "Hi! Our General Consultation is free to book. Want a slot this week?",
            "classification": "lead",
            "confidence": 0.82,
            "escalated": False,
        }
        payload.update(overrides)
        return json.dumps(payload)
    return _build


@pytest.fixture
def openai_client():
    return make_openai_client

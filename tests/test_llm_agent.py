"""
Tests for the LLM reply generator.
"""

import json

import httpx
import openai
import pytest

from app import llm_agent
from app.agent_config import get_agent_config
from app.model_client import ChatModel, ModelUnavailableError, build_chat_model
from app.models import AgentReply, AgentReplyInput, MessageClassification

ALLOWED_CLASSIFICATIONS = {c.value for c in MessageClassification}


@pytest.fixture
def agent_config():
    return get_agent_config({
        "COMPANY_NAME": "Bright Dental",
        "AGENT_ESCALATION_EMAIL": "team@brightdental.com",
        "AGENT_TEMPERATURE": "0.3",
        "OPENAI_MODEL": "gpt-4o-mini",
    })


@pytest.fixture
def reply_input():
    return AgentReplyInput(body="Hi, I'm Dana. Do you do whitening?", sender="whatsapp:+15551234567",
                           timestamp="2026-10-19T09:30:00+00:00")


def test_fallback_without_model(agent_config, reply_input):
    reply = llm_agent.generate_agent_reply(reply_input, ChatModel(None), agent_config)

    assert reply.classification == MessageClassification.NOT_UNDERSTOOD
    assert reply.confidence == 0.35
    assert reply.escalated is True
    assert reply.reply.startswith(agent_config.fallbacks.generic)
    assert "(Automated reply to whatsapp:+15551234567)" in reply.reply


def test_fallback_is_deterministic(agent_config, reply_input):
    model = build_chat_model(api_key="")
    first = llm_agent.generate_agent_reply(reply_input, model, agent_config)
    second = llm_agent.generate_agent_reply(reply_input, model, agent_config)
    assert first == second


def test_build_chat_model_without_key_is_unavailable():
    model = build_chat_model(api_key=None)
    assert model.available is False
    with pytest.raises(ModelUnavailableError):
        model.complete_json(model="gpt-4o-mini", temperature=0.5, system_prompt="s", user_prompt="u")


def test_config_read_from_environment_when_not_passed(monkeypatch, reply_input):
    monkeypatch.setenv("AGENT_FALLBACK_GENERIC", "A human will reply soon.")
    reply = llm_agent.generate_agent_reply(reply_input, ChatModel(None))
    assert reply.reply.startswith("A human will reply soon.")


def test_model_reply_is_returned(agent_config, reply_input, openai_client, model_reply):
    client = openai_client(content=model_reply())
    reply = llm_agent.generate_agent_reply(reply_input, ChatModel(client), agent_config)

    assert reply.classification == MessageClassification.LEAD
    assert reply.confidence == pytest.approx(0.82)
    assert reply.escalated is False
    assert reply.reply.startswith("Hi! Our General Consultation")


def test_request_uses_config_and_json_mode(agent_config, reply_input, openai_client, model_reply):
    client = openai_client(content=model_reply())
    llm_agent.generate_agent_reply(reply_input, ChatModel(client), agent_config)

    kwargs = client.chat.completions.create.call_args.kwargs
    assert kwargs["model"] == "gpt-4o-mini"
    assert kwargs["temperature"] == 0.3
    assert kwargs["response_format"] == {"type": "json_object"}

    roles = [m["role"] for m in kwargs["messages"]]
    assert roles == ["system", "user"]
    assert "Bright Dental" in kwargs["messages"][0]["content"]
    assert "Do you do whitening?" in kwargs["messages"][1]["content"]


@pytest.mark.parametrize(
    "overrides, expected",
    [
        ({"confidence": 1.7}, 1.0),
        ({"confidence": -3}, 0.0),
        ({"confidence": "high"}, 0.5),
        ({"confidence": True}, 0.5),
        ({"confidence": None}, 0.5),
    ],
)
def test_confidence_is_clamped(agent_config, reply_input, openai_client, model_reply, overrides, expected):
    client = openai_client(content=model_reply(**overrides))
    reply = llm_agent.generate_agent_reply(reply_input, ChatModel(client), agent_config)
    assert reply.confidence == pytest.approx(expected)


@pytest.mark.parametrize("classification", [None, "spam", 42, ["lead"]])
def test_unknown_classification_defaults_to_not_understood(
    agent_config, reply_input, openai_client, model_reply, classification
):
    client = openai_client(content=model_reply(classification=classification))
    reply = llm_agent.generate_agent_reply(reply_input, ChatModel(client), agent_config)
    assert reply.classification == MessageClassification.NOT_UNDERSTOOD


def test_missing_reply_text_uses_generic_fallback(agent_config, reply_input, openai_client):
    client = openai_client(content=json.dumps({"classification": "support", "confidence": 0.6}))
    reply = llm_agent.generate_agent_reply(reply_input, ChatModel(client), agent_config)

    assert reply.reply == agent_config.fallbacks.generic
    assert reply.classification == MessageClassification.SUPPORT
    assert reply.escalated is False


def test_escalated_is_coerced_to_bool(agent_config, reply_input, openai_client, model_reply):
    client = openai_client(content=model_reply(escalated="yes"))
    reply = llm_agent.generate_agent_reply(reply_input, ChatModel(client), agent_config)
    assert reply.escalated is True


def test_reply_text_is_trimmed(agent_config, reply_input, openai_client, model_reply):
    client = openai_client(content=model_reply(reply="  Hello Dana!  \n"))
    reply = llm_agent.generate_agent_reply(reply_input, ChatModel(client), agent_config)
    assert reply.reply == "Hello Dana!"


@pytest.mark.parametrize(
    "client_kwargs",
    [
        {"side_effect": Exception("API Error")},
        {"side_effect": openai.APIConnectionError(request=httpx.Request("POST", "https://api.openai.com"))},
        {"content": "this is not json"},
        {"content": "[1, 2, 3]"},
        {"content": ""},
        {"content": None},
        {"choices": False},
    ],
)
def test_model_failures_become_fallback(agent_config, reply_input, openai_client, client_kwargs):
    client = openai_client(**client_kwargs)
    reply = llm_agent.generate_agent_reply(reply_input, ChatModel(client), agent_config)

    assert reply == llm_agent.build_fallback_reply(reply_input, agent_config)


@pytest.mark.parametrize(
    "content",
    [
        '{"reply": "ok", "classification": "pricing", "confidence": 0.4, "escalated": false}',
        '{"reply": "ok", "classification": "off-hours", "confidence": 12}',
        '{"classification": "LEAD", "confidence": "0.9"}',
        "{}",
        "garbage",
    ],
)
def test_reply_always_within_contract(agent_config, reply_input, openai_client, content):
    client = openai_client(content=content)
    reply = llm_agent.generate_agent_reply(reply_input, ChatModel(client), agent_config)

    assert isinstance(reply, AgentReply)
    assert reply.classification.value in ALLOWED_CLASSIFICATIONS
    assert 0.0 <= reply.confidence <= 1.0


def test_system_prompt_contents(agent_config):
    prompt = llm_agent.build_system_prompt(agent_config)

    assert '"Bright Dental"' in prompt
    assert agent_config.tone in prompt
    assert agent_config.business_hours in prompt
    assert "Escalation email: team@brightdental.com." in prompt
    assert "under 1200 characters" in prompt
    assert "Never invent prices or policies" in prompt
    assert "1. General Consultation" in prompt
    assert "2. Full-Service Engagement" in prompt
    assert "- Consultations are free to book" in prompt


def test_system_prompt_without_escalation_email():
    prompt = llm_agent.build_system_prompt(get_agent_config({}))
    assert "Escalation email: not provided." in prompt


def test_user_prompt_contents(agent_config, reply_input):
    prompt = llm_agent.build_user_prompt(reply_input, agent_config)

    assert "Incoming message body:\nHi, I'm Dana. Do you do whitening?" in prompt
    assert "Client phone number: whatsapp:+15551234567" in prompt
    assert "Received at: 2026-10-19T09:30:00+00:00" in prompt
    assert '"classification": "lead" | "support" | "pricing" | "off-hours" | "not-understood"' in prompt
    assert f"- Generic fallback: {agent_config.fallbacks.generic}" in prompt
    assert f"- Outside hours fallback: {agent_config.fallbacks.outside_hours}" in prompt
    assert f"- Escalation fallback: {agent_config.fallbacks.escalation}" in prompt


def test_user_prompt_omits_missing_timestamp(agent_config):
    prompt = llm_agent.build_user_prompt(AgentReplyInput(body="hello", sender="+1555"), agent_config)
    assert "Received at" not in prompt

"""
OpenAI chat model as an injectable capability.

The reply generator receives a ChatModel instead of reaching for a module
level client. Without a credential the model is simply unavailable.
"""

from functools import lru_cache
from typing import Optional

from openai import OpenAI

from app.config import config
from app.logging_config import get_logger

logger = get_logger(__name__)


class ModelUnavailableError(RuntimeError):
    """Raised when a completion is requested from an unconfigured model."""


class ChatModel:
    """Thin wrapper over the OpenAI chat completions API."""

    def __init__(self, client: Optional[OpenAI] = None):
        self._client = client

    @property
    def available(self) -> bool:
        return self._client is not None

    def complete_json(
        self,
        *,
        model: str,
        temperature: float,
        system_prompt: str,
        user_prompt: str,
    ) -> Optional[str]:
        """
        Request a JSON-object completion.

        Returns:
            Content of the first choice, or None if the response has no choices
        """
        if self._client is None:
            raise ModelUnavailableError("OpenAI is not configured")

        completion = self._client.chat.completions.create(
            model=model,
            temperature=temperature,
            response_format={"type": "json_object"},
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
        )

        if not completion.choices:
            return None
        return completion.choices[0].message.content


def build_chat_model(api_key: Optional[str] = None, timeout: Optional[float] = None) -> ChatModel:
    """Construct a ChatModel; unavailable when no API key is given."""
    if not api_key:
        logger.info("chat_model_unavailable", reason="no_api_key")
        return ChatModel(None)

    # A single failed call goes straight to the fallback reply.
    client = OpenAI(api_key=api_key, timeout=timeout, max_retries=0)
    return ChatModel(client)


@lru_cache(maxsize=1)
def get_chat_model() -> ChatModel:
    """FastAPI dependency: the process-wide model, built on first use."""
    return build_chat_model(config.OPENAI_API_KEY, config.OPENAI_TIMEOUT_SECONDS)

"""Runtime configuration for the WhatsApp auto-responder."""

import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


class Config:
    """Application configuration."""

    # OpenAI Configuration
    # If no key is configured the agent runs in fallback-only mode.
    OPENAI_API_KEY: str = os.getenv("OPENAI_API_KEY", "").strip()
    # No timeout on the model call means a slow upstream holds the request open.
    OPENAI_TIMEOUT_SECONDS: float = float(os.getenv("OPENAI_TIMEOUT_SECONDS", "30"))

    # Twilio / WhatsApp webhook
    # Shared secret used to sign webhook requests (the Twilio auth token).
    WHATSAPP_WEBHOOK_SECRET: str = os.getenv("WHATSAPP_WEBHOOK_SECRET", "").strip()

    # Application Settings
    APP_ENV: str = os.getenv("APP_ENV", "development").strip().lower()
    DEBUG: bool = os.getenv("DEBUG", "False").lower() == "true"
    # Public URL Twilio calls us on (ngrok URL in development). Signatures are
    # computed against this when set, since proxies rewrite the request URL.
    BASE_URL: str = os.getenv("BASE_URL", "").strip()
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

    # Optional: include inbound message text and agent replies in logs.
    # Defaults to enabled in development (DEBUG=True) and disabled otherwise.
    # May include customer personal data.
    LOG_MESSAGE_BODIES: bool = os.getenv(
        "LOG_MESSAGE_BODIES",
        "True" if DEBUG else "False",
    ).lower() == "true"
    LOG_MESSAGE_MAX_CHARS: int = int(os.getenv("LOG_MESSAGE_MAX_CHARS", "200"))

    @classmethod
    def has_openai_key(cls) -> bool:
        """Check if OpenAI API key is configured."""
        return bool(cls.OPENAI_API_KEY)

    @classmethod
    def has_webhook_secret(cls) -> bool:
        """Check if the webhook signing secret is configured."""
        return bool(cls.WHATSAPP_WEBHOOK_SECRET)

    @classmethod
    def is_production(cls) -> bool:
        """Signature failures are only enforced in production."""
        return cls.APP_ENV == "production"


# Create a global config instance
config = Config()

"""
Webhook security.
- Twilio request signature verification (HMAC-SHA1, X-Twilio-Signature)
"""

from typing import Mapping, Optional

from fastapi import HTTPException, Request
from twilio.request_validator import RequestValidator

from app.config import config
from app.logging_config import get_logger
from app.metrics import webhook_requests_total

logger = get_logger(__name__)

SIGNATURE_HEADER = "X-Twilio-Signature"


def verify_twilio_signature(
    url: str,
    params: Mapping[str, str],
    signature: Optional[str],
    auth_token: Optional[str],
) -> bool:
    """
    Check a Twilio webhook signature.

    Twilio signs the full request URL followed by every POST parameter
    (sorted by name, name+value concatenated) with HMAC-SHA1 keyed by the
    auth token, base64 encoded.

    Returns:
        True only if both the signature and the secret are present and match
    """
    if not signature or not auth_token:
        return False
    return RequestValidator(auth_token).validate(url, dict(params), signature)


def _signed_url(request: Request) -> str:
    """URL Twilio signed: the public BASE_URL when behind a proxy, else the request URL."""
    if not config.BASE_URL:
        return str(request.url)

    url = config.BASE_URL.rstrip("/") + request.url.path
    if request.url.query:
        url += f"?{request.url.query}"
    return url


async def require_twilio_signature(request: Request) -> bool:
    """
    Verify the signature of an inbound webhook request.

    Usage:
        @router.post("/webhook")
        async def webhook(request: Request, signed: bool = Depends(require_twilio_signature)):
            ...

    Outside production a failed check is only logged, so local testing with
    curl or the simulator keeps working.
    """
    form_data = await request.form()
    params = {k: str(v) for k, v in form_data.items()}
    signature = request.headers.get(SIGNATURE_HEADER)

    if verify_twilio_signature(_signed_url(request), params, signature, config.WHATSAPP_WEBHOOK_SECRET):
        return True

    if config.is_production():
        logger.warning(
            "webhook_signature_rejected",
            has_signature=bool(signature),
            secret_configured=config.has_webhook_secret(),
        )
        webhook_requests_total.labels(status="401").inc()
        raise HTTPException(status_code=401, detail="Invalid Twilio signature")

    logger.warning(
        "webhook_signature_invalid",
        has_signature=bool(signature),
        secret_configured=config.has_webhook_secret(),
        app_env=config.APP_ENV,
    )
    return False

from fastapi import APIRouter, Depends, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse, Response

from app import llm_agent
from app.logging_config import bind_message_context, logger
from app.metrics import webhook_requests_total
from app.model_client import ChatModel, get_chat_model
from app.models import AgentReplyInput
from app.security import require_twilio_signature
from app.twiml_builder import build_message_twiml

router = APIRouter(tags=["WhatsApp"])


# POST /webhook
# Gets: Twilio form fields (Body, From, Timestamp, ...) and the X-Twilio-Signature header
# Returns: TwiML (application/xml) with the agent reply in a single <Message>
# Example:
#   curl -X POST http://localhost:8000/webhook -d 'Body=Hi&From=whatsapp%3A%2B15555550123'
@router.post("/webhook")
async def whatsapp_webhook(
    request: Request,
    signed: bool = Depends(require_twilio_signature),
    model: ChatModel = Depends(get_chat_model),
):
    """Twilio WhatsApp webhook for inbound messages."""

    form_data = await request.form()
    body = str(form_data.get("Body") or "").strip()
    from_number = str(form_data.get("From") or "unknown")
    timestamp = form_data.get("Timestamp") or None

    bind_message_context(channel="whatsapp", from_number=from_number, message_sid=form_data.get("MessageSid"))
    logger.info("webhook_message_received", signed=signed, has_body=bool(body), message_body=body)

    if not body:
        webhook_requests_total.labels(status="400").inc()
        return JSONResponse(status_code=400, content={"error": "Message body is required"})

    reply = await run_in_threadpool(
        llm_agent.generate_agent_reply,
        AgentReplyInput(body=body, sender=from_number, timestamp=str(timestamp) if timestamp else None),
        model,
    )

    webhook_requests_total.labels(status="200").inc()
    return Response(
        content=build_message_twiml(reply.reply),
        status_code=200,
        media_type="application/xml; charset=utf-8",
        headers={"Cache-Control": "no-store"},
    )

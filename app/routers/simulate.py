from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from app import llm_agent
from app.logging_config import bind_message_context, logger
from app.model_client import ChatModel, get_chat_model
from app.models import AgentReply, AgentReplyInput, ErrorResponse, SimulateRequest

router = APIRouter(tags=["Simulation"])


# POST /simulate
# Gets: JSON body {message: str, from?: str}; null fields take their defaults
# Returns: AgentReply {reply, classification, confidence, escalated}
# Example:
#   curl -X POST http://localhost:8000/simulate \
#     -H 'Content-Type: application/json' \
#     -d '{"message": "Hi, how much is a consultation?", "from": "whatsapp:+15555550123"}'
@router.post(
    "/simulate",
    response_model=AgentReply,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    openapi_extra={
        "requestBody": {
            "required": True,
            "content": {"application/json": {"schema": SimulateRequest.model_json_schema(by_alias=True)}},
        }
    },
)
async def simulate(request: Request, model: ChatModel = Depends(get_chat_model)):
    """Run the agent on a message without going through WhatsApp."""

    try:
        payload = SimulateRequest.from_payload(await request.json())
        message = payload.message.strip()
        bind_message_context(channel="simulator", from_number=payload.sender)

        if not message:
            return JSONResponse(status_code=400, content={"error": "Message is required"})

        reply_input = AgentReplyInput(
            body=message,
            sender=payload.sender,
            timestamp=datetime.now(timezone.utc).isoformat(),
        )
        logger.info("simulation_message_received", message_body=message)
        return await run_in_threadpool(llm_agent.generate_agent_reply, reply_input, model)
    except Exception as e:
        logger.error("simulation_failed", error=str(e), error_type=type(e).__name__)
        return JSONResponse(status_code=500, content={"error": "Failed to simulate agent response."})

from fastapi import APIRouter

router = APIRouter(tags=["Core"])


# GET /
# Gets: nothing
# Returns: basic API metadata and a map of key endpoints
# Example:
#   curl http://localhost:8000/
@router.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "WhatsApp Auto-Responder API",
        "version": "1.0.0",
        "description": "Answers inbound WhatsApp messages with an LLM agent configured for your company",
        "endpoints": {
            "simulate": "/simulate",
            "webhook": "/webhook",
            "health": "/health",
            "metrics": "/metrics",
        },
        "features": [
            "Twilio WhatsApp webhook (TwiML replies)",
            "Browserless simulation endpoint",
            "Message classification and escalation",
            "Deterministic fallback when the model is unavailable",
        ],
    }

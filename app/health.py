"""
Health check and monitoring endpoints.
"""

from fastapi import APIRouter

from app.agent_config import load_agent_config, get_agent_config
from app.config import config
from app.logging_config import logger

router = APIRouter(tags=["Health & Monitoring"])

SERVICE_NAME = "whatsapp-responder"
VERSION = "1.0.0"


# GET /health
# Gets: nothing
# Returns: {status, service, version}
# Example:
#   curl http://localhost:8000/health
@router.get("/health")
async def health_check():
    """
    Basic health check - returns 200 if service is running.
    Use this for basic liveness probes.
    """
    return {
        "status": "healthy",
        "service": SERVICE_NAME,
        "version": VERSION,
    }


# GET /health/ready
# Gets: nothing
# Returns: readiness checks
# Example:
#   curl http://localhost:8000/health/ready
@router.get("/health/ready")
async def readiness_check():
    """
    Readiness check.

    The service is always able to answer: without OpenAI it runs in
    fallback-only mode, and invalid agent config falls back to defaults.
    """
    config_result = load_agent_config()
    if not config_result.ok:
        logger.debug("readiness_check_agent_config", status="defaults_substituted")

    return {
        "openai": True if config.has_openai_key() else "not_configured",
        "agent_config": "valid" if config_result.ok else "defaults_substituted",
        "webhook_secret": True if config.has_webhook_secret() else "not_configured",
        "ready": True,
    }


# GET /health/info
# Gets: nothing
# Returns: service configuration summary
# Example:
#   curl http://localhost:8000/health/info
@router.get("/health/info")
async def system_info():
    """
    System information and configuration status.
    """
    agent_config = get_agent_config()
    return {
        "service": SERVICE_NAME,
        "version": VERSION,
        "configuration": {
            "company_name": agent_config.company_name,
            "services_count": len(agent_config.services),
            "openai_configured": config.has_openai_key(),
            "openai_model": agent_config.openai_model if config.has_openai_key() else None,
            "webhook_secret_configured": config.has_webhook_secret(),
            "production": config.is_production(),
            "debug_mode": config.DEBUG,
        },
        "features": {
            "llm_replies": config.has_openai_key(),
            "fallback_only": not config.has_openai_key(),
            "signature_enforced": config.is_production(),
        },
    }

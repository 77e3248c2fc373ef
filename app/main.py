"""Main FastAPI application."""

from contextlib import asynccontextmanager
from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST

from app.agent_config import get_agent_config
from app.config import config
from app.health import router as health_router, VERSION
from app.logging_config import logger
from app.routers.core import router as core_router
from app.routers.simulate import router as simulate_router
from app.routers.webhook import router as webhook_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan - startup and shutdown."""
    agent_config = get_agent_config()
    logger.info("application_starting", version=VERSION, app_env=config.APP_ENV)
    logger.info("openai_configured", configured=config.has_openai_key(), model=agent_config.openai_model)
    logger.info("agent_company", company=agent_config.company_name, services=len(agent_config.services))
    if not config.has_webhook_secret():
        logger.warning("webhook_secret_missing", enforced=config.is_production())

    yield

    logger.info("application_shutting_down")


app = FastAPI(
    title="WhatsApp Auto-Responder API",
    description="LLM-backed auto-responder for inbound WhatsApp messages",
    version=VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """Every error body is {"error": ...}."""
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers)


# GET /metrics
# Gets: nothing
# Returns: Prometheus exposition text
# Example:
#   curl http://localhost:8000/metrics
@app.get("/metrics")
async def metrics():
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


app.include_router(core_router)
app.include_router(health_router)
app.include_router(simulate_router)
app.include_router(webhook_router)

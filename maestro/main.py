import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from maestro.core.config import get_settings
from maestro.core.errors import (
    MaestroException,
    maestro_exception_handler,
    validation_exception_handler,
    unhandled_exception_handler,
)
from maestro.core.logging import setup_logging
from maestro.routers import feedback as feedback_router
from maestro.routers import proactivity as proactivity_router
from maestro.services.registry import CoachRegistry

settings = get_settings()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(settings)
    app.state.registry = CoachRegistry(settings)
    logger.info("Chat Maestro started (env=%s)", settings.APP_ENV)
    yield
    app.state.registry.clear()


app = FastAPI(
    title="Chat Maestro API",
    description=(
        "**Proactivity & feedback engines for the Chat Maestro coach**\n\n"
        "Evaluates user snapshots against rule catalogs (priorities, cooldowns, "
        "quiet hours) and returns ordered coaching interventions and feedback.\n\n"
        "All error responses follow the `{code, message, details}` envelope."
    ),
    version="2.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# --- CORS ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- Exception handlers (most specific first) ---
app.add_exception_handler(MaestroException, maestro_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)

# --- Routers ---
app.include_router(proactivity_router.router)
app.include_router(feedback_router.router)


@app.get("/health", tags=["health"], summary="Health check")
def health(request: Request):
    """
    Returns `{"status": "ok"}` once the registry is up.
    Used by Railway / Render for liveness probes.
    """
    registry = request.app.state.registry
    return {
        "status": "ok",
        "env": settings.APP_ENV,
        "users": len(registry.user_ids()),
    }

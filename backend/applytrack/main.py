"""applytrack — FastAPI Application Entry Point."""

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from applytrack import models  # noqa: F401  (registers tables on Base.metadata)
from applytrack.config import settings
from applytrack.database import engine, Base
from applytrack.exceptions import (
    ConfigurationError,
    GenerationError,
    GenerativeServiceError,
    NotFoundError,
    RateLimitError,
    RenderError,
    ResumeEngineError,
    ValidationError,
    VersionConflictError,
)
from applytrack.middleware.rate_limit import limiter
from applytrack.routers import resumes
from applytrack.services.ai_client import ai_provider_name, ai_health_check

logger = logging.getLogger(__name__)

# Create all tables on startup
Base.metadata.create_all(bind=engine)

# ── CORS origins from env (supports dev localhost + production domain) ──────
_cors_origins = [o.strip() for o in settings.ALLOWED_ORIGINS.split(",") if o.strip()]

app = FastAPI(
    title="applytrack",
    description="Job application tracker with tailored resume generation.",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

# Rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Resume engine errors → HTTP ─────────────────────────────────────────────
_STATUS_CODES: dict[type, int] = {
    ValidationError: 400,
    NotFoundError: 404,
    GenerationError: 422,
    VersionConflictError: 409,
    RateLimitError: 429,
    RenderError: 500,
    GenerativeServiceError: 502,
    ConfigurationError: 503,
}


async def resume_engine_error_handler(request: Request, exc: ResumeEngineError) -> JSONResponse:
    status_code = next(
        (code for cls, code in _STATUS_CODES.items() if isinstance(exc, cls)),
        500,
    )
    body: dict = {"error": type(exc).__name__, "detail": str(exc)}
    headers = {}
    if isinstance(exc, RateLimitError):
        body["retry_after"] = exc.seconds_remaining
        headers["Retry-After"] = str(exc.seconds_remaining)
    if status_code >= 500:
        logger.error("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc)
    return JSONResponse(status_code=status_code, content=body, headers=headers)


app.add_exception_handler(ResumeEngineError, resume_engine_error_handler)

# Routers
app.include_router(resumes.router)


@app.on_event("startup")
async def on_startup():
    """Log the active AI provider."""
    provider = ai_provider_name()
    if provider == "none":
        print("\n" + "=" * 60)
        print("  ⚠  AI NOT CONFIGURED")
        print("  Resume generation and fit analysis will fail until you set either")
        print("    OCI_CONFIG_FILE / OCI_CONFIG_PROFILE / ORACLE_GENAI_COMPARTMENT_ID / ORACLE_GENAI_MODEL")
        print("  or")
        print("    ANTHROPIC_API_KEY")
        print("  in backend/.env and restart. Visit /api/health/ai to verify.")
        print("=" * 60 + "\n")
    else:
        print(f"\n  ✓  AI provider: {provider}\n")


@app.get("/")
def root():
    return {
        "name": "applytrack API",
        "version": "1.0.0",
        "docs": "/docs",
        "ai_provider": ai_provider_name(),
    }


@app.get("/health")
def health():
    return {"status": "ok", "ai_provider": ai_provider_name()}


@app.get("/api/health/ai")
async def health_ai():
    """Live connectivity test for the configured AI provider."""
    return await ai_health_check()

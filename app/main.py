"""
Feature Resolver API - Main Application
Serves the feature-flag configuration resolved for this process.
"""
import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import settings
from app.routers import features

from feature_resolver.core.constants import initialize_runtime_constants  # type: ignore
from feature_resolver.core.resolved import ConfigurationSlot  # type: ignore
from feature_resolver.io.loader import load_facts  # type: ignore
from feature_resolver.runner import run_resolver  # type: ignore

_log = logging.getLogger(__name__)


# =============================================================================
# Lifespan Event Handler
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Derive, publish and initialize the process configuration once."""
    slot = ConfigurationSlot()
    app.state.features = slot

    facts = load_facts(Path(settings.FEATURES_FACTS_FILE)) if settings.FEATURES_FACTS_FILE else None
    config = run_resolver(
        facts=facts,
        selector=settings.FEATURES_PROFILE,
        overrides=settings.overrides,
        output_dir=Path(settings.FEATURES_OUTPUT_DIR) if settings.FEATURES_OUTPUT_DIR else None,
        slot=slot,
        macro_prefix=settings.FEATURES_MACRO_PREFIX,
    )
    initialize_runtime_constants(config)
    _log.info("Serving configuration %s (%s)", config.profile_id, config.fingerprint[:12])
    yield


# =============================================================================
# FastAPI Application
# =============================================================================

app = FastAPI(
    title=settings.API_TITLE,
    description="Build-time feature flag resolution: Signals → Profile → Detection → Validation",
    version=settings.API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Return 422 with structured error details."""
    body = await request.body()
    _log.warning(
        "422 on %s %s  body[:200]=%s  errors=%s",
        request.method, request.url.path, body[:200], exc.errors()[:3],
    )
    return JSONResponse(status_code=422, content={"detail": exc.errors()})


# =============================================================================
# Health Check
# =============================================================================

@app.get("/health")
async def health_check(request: Request):
    """Health check endpoint"""
    slot = getattr(request.app.state, "features", None)
    return {
        "status": "healthy" if slot is not None and slot.published else "starting",
        "service": "feature-resolver-api",
        "version": settings.API_VERSION
    }


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "message": "Feature Resolver API - resolved build configuration",
        "docs": "/docs",
        "health": "/health"
    }


# =============================================================================
# Register Routers
# =============================================================================

app.include_router(features.router, prefix="/features", tags=["features"])


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        reload=True  # For development
    )

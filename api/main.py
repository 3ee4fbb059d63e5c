"""
api/main.py — FastAPI application entry point.

Run with:
    uvicorn api.main:app --reload
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text

from app.config import check_startup_config, settings
from app.db.session import engine
from api.endpoints.intake_routes import router as intake_router
from api.endpoints.lead_routes import router as lead_router
from api.schemas import ContactRejected

logger = logging.getLogger(__name__)


# ── Lifespan ─────────────────────────────────────────────────────────────────

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown logic."""
    # Bad config is fatal here, not on the first request
    check_startup_config(settings)

    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))
    logger.info("Database connection verified.")
    yield
    logger.info("Application shutting down.")


# ── App ───────────────────────────────────────────────────────────────────────

app = FastAPI(
    title="Inquiry Intake Service",
    description=(
        "Receives contact form submissions, screens them for abuse, stores "
        "them as leads, and qualifies them with AI in the background."
    ),
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Error handlers ────────────────────────────────────────────────────────────

@app.exception_handler(RequestValidationError)
async def contact_body_rejected(request: Request, exc: RequestValidationError):
    """A /contact body that is not a JSON object still gets the contact rejection shape."""
    if request.url.path != "/contact":
        return await request_validation_exception_handler(request, exc)
    body = ContactRejected(
        error="invalid",
        message="Please correct the highlighted fields.",
        field_errors={"__root__": "Request body must be a JSON object"},
    )
    return JSONResponse(status_code=422, content=body.model_dump(exclude_none=True))


# ── Routers ───────────────────────────────────────────────────────────────────

app.include_router(intake_router, tags=["Intake"])
app.include_router(lead_router, prefix="/leads", tags=["Leads"])


# ── Health check ─────────────────────────────────────────────────────────────

@app.get("/health", tags=["System"])
def health_check():
    """Returns service liveness status."""
    return {"status": "ok", "service": "inquiry-intake"}

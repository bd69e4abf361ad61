"""FastAPI application entry point."""
import logging

from fastapi import Depends, FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from helpdesk.core.config import settings
from helpdesk.core.deps import get_db
from helpdesk.core.errors import (
    ConflictError,
    DependencyError,
    HelpdeskError,
    NotFoundError,
    ValidationError,
)
from helpdesk.core.structured_logging import build_log_context, configure_logging

configure_logging()
logger = logging.getLogger(__name__)

# ============================================================================
# FastAPI App
# ============================================================================

app = FastAPI(
    title="Helpdesk API",
    description="Customer identity resolution, ticket routing and merge",
    version=settings.VERSION,
    docs_url="/docs" if settings.ENV == "dev" else None,
    redoc_url="/redoc" if settings.ENV == "dev" else None,
)

# CORS middleware - must be added before routers
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Requested-With"],
)

# ============================================================================
# Error mapping
# ============================================================================

_ERROR_STATUS = {
    ValidationError: 422,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    ConflictError: status.HTTP_409_CONFLICT,
    DependencyError: status.HTTP_503_SERVICE_UNAVAILABLE,
}


@app.exception_handler(HelpdeskError)
async def helpdesk_error_handler(request: Request, exc: HelpdeskError) -> JSONResponse:
    status_code = next(
        (code for cls, code in _ERROR_STATUS.items() if isinstance(exc, cls)),
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
    if status_code >= 500:
        logger.warning(
            "Request failed: %s",
            exc,
            extra=build_log_context(route=request.url.path),
        )
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


# ============================================================================
# Routers
# ============================================================================

from helpdesk.routers import customers, tickets, webhooks  # noqa: E402

app.include_router(webhooks.router, prefix="/webhooks", tags=["webhooks"])
app.include_router(tickets.router, prefix="/tickets", tags=["tickets"])
app.include_router(customers.router, prefix="/customers", tags=["customers"])


# ============================================================================
# Health Check
# ============================================================================


@app.get("/health")
def health(db: Session = Depends(get_db)):
    """
    Health check endpoint.

    Verifies database connectivity and returns environment info.
    """
    try:
        db.execute(text("SELECT 1"))
    except OperationalError as exc:
        raise DependencyError("Customer/ticket store unavailable") from exc
    return {"status": "ok", "env": settings.ENV, "version": settings.VERSION}

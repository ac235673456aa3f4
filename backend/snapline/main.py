# backend/snapline/main.py
import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from snapline.config import get_settings
from snapline.exceptions import InvariantViolationError, NotFoundError
from snapline.api.snapshots import router as snapshots_router
from snapline.api.components import router as components_router

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.app_name,
    description="Analysis snapshot history store",
    version="0.1.0",
)


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})


@app.exception_handler(InvariantViolationError)
async def invariant_violation_handler(request: Request, exc: InvariantViolationError):
    logger.error(f"Invariant violation on {request.url.path}: {exc}")
    return JSONResponse(status_code=status.HTTP_409_CONFLICT, content={"detail": str(exc)})


# Include routers
app.include_router(snapshots_router, prefix="/api/v1")
app.include_router(components_router, prefix="/api/v1")


@app.get("/health")
async def health_check():
    return {"status": "healthy", "app": settings.app_name}

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.routes import (
    activity,
    eligibility,
    health,
    requirements,
    settings as settings_routes,
    substitutions,
    timetable,
)
from app.core.config import get_settings
from app.core.exceptions import AppError
from app.core.middleware import (
    RequestLoggingMiddleware,
    RequestSizeLimitMiddleware,
    SecurityHeadersMiddleware,
)
from app.db.bootstrap import ensure_runtime_schema_compatibility

settings = get_settings()

logging.basicConfig(level=settings.log_level, format=settings.log_format)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    ensure_runtime_schema_compatibility()
    logger.info("Timetable service ready")
    yield


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "details": exc.details},
    )


app = FastAPI(title=settings.project_name, lifespan=lifespan)
app.add_exception_handler(AppError, app_error_handler)

app.add_middleware(RequestSizeLimitMiddleware, max_bytes=settings.max_request_size_bytes)
app.add_middleware(SecurityHeadersMiddleware, settings=settings)
app.add_middleware(RequestLoggingMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router, prefix=settings.api_prefix, tags=["health"])
app.include_router(timetable.router, prefix=f"{settings.api_prefix}/timetable", tags=["timetable"])
app.include_router(settings_routes.router, prefix=settings.api_prefix, tags=["settings"])
app.include_router(requirements.router, prefix=settings.api_prefix, tags=["requirements"])
app.include_router(substitutions.router, prefix=settings.api_prefix, tags=["substitutions"])
app.include_router(eligibility.router, prefix=settings.api_prefix, tags=["eligibility"])
app.include_router(activity.router, prefix=settings.api_prefix, tags=["activity"])

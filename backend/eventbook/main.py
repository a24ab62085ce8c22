import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse

from . import models  # noqa: F401  registers every table on Base.metadata
from .api import api_booking_request, api_service_agreement
from .core.config import settings
from .core.observability import setup_logging
from .database import Base, engine
from .utils.errors import BookingEngineError
from .utils.status_logger import register_status_listeners

# Configure logging before creating any loggers
setup_logging()
logger = logging.getLogger(__name__)

register_status_listeners()
Base.metadata.create_all(bind=engine)

# Always use ORJSONResponse for JSON payloads to ensure consistent, fast
# serialization across all endpoints.
app = FastAPI(title="Event Booking API", default_response_class=ORJSONResponse)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials="*" not in settings.CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)
logger.info("CORS origins set to: %s", settings.CORS_ORIGINS)


@app.exception_handler(BookingEngineError)
async def booking_engine_exception_handler(request: Request, exc: BookingEngineError):
    """Render business-rule violations as ``{message, field_errors, code}``."""
    http_exc = exc.to_http_exception()
    return ORJSONResponse(
        status_code=http_exc.status_code,
        content={"detail": http_exc.detail},
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Return validation errors with details and log them for debugging."""
    errors = exc.errors()
    logger.warning("Validation error at %s: %s", request.url.path, errors)
    return ORJSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": jsonable_errors(errors)},
    )


def jsonable_errors(errors):
    # pydantic may put the raw exception object in ``ctx``
    cleaned = []
    for err in errors:
        item = dict(err)
        if "ctx" in item:
            item["ctx"] = {k: str(v) for k, v in item["ctx"].items()}
        cleaned.append(item)
    return cleaned


@app.get("/healthz", tags=["health"])
async def healthz():
    return {"status": "ok"}


api_prefix = settings.API_V1_STR  # usually something like "/api/v1"

app.include_router(
    api_booking_request.router,
    prefix=f"{api_prefix}/booking-requests",
    tags=["booking-requests"],
)
app.include_router(
    api_service_agreement.router,
    prefix=f"{api_prefix}/service-agreements",
    tags=["service-agreements"],
)

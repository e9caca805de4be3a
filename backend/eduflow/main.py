from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from eduflow.api.routes import academic, health, notifications, teacher
from eduflow.core.config import get_settings
from eduflow.core.exceptions import AppError, error_response
from eduflow.core.logging import configure_logging
from eduflow.core.middleware import RequestSizeLimitMiddleware, SecurityHeadersMiddleware

settings = get_settings()
configure_logging(settings.log_level, json_output=settings.log_json)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    logger.info("%s starting", settings.project_name)
    yield


async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return error_response(exc)


async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = [
        {"loc": list(item.get("loc", [])), "msg": item.get("msg", "")}
        for item in exc.errors()
    ]
    missing = [item for item in errors if "missing" in item["msg"].lower() or "required" in item["msg"].lower()]
    return JSONResponse(
        status_code=400,
        content={
            "success": False,
            "message": "Missing required fields" if missing else "Invalid request",
            "details": {"errors": errors},
        },
    )


async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error("Database error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={"success": False, "message": "Internal server error"},
    )


app = FastAPI(title=settings.project_name, lifespan=lifespan)
app.add_exception_handler(AppError, app_error_handler)
app.add_exception_handler(RequestValidationError, validation_error_handler)
app.add_exception_handler(StarletteHTTPException, http_error_handler)
app.add_exception_handler(SQLAlchemyError, database_error_handler)

app.add_middleware(RequestSizeLimitMiddleware, max_bytes=settings.max_request_size_bytes)
app.add_middleware(SecurityHeadersMiddleware, settings=settings)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router, prefix=settings.api_prefix, tags=["health"])
app.include_router(teacher.router, prefix=settings.api_prefix, tags=["teacher"])
app.include_router(academic.router, prefix=settings.api_prefix, tags=["academic"])
app.include_router(notifications.router, prefix=settings.api_prefix, tags=["notifications"])

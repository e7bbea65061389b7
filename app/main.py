import logging
import sys
import time

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import IntegrityError, NoResultFound
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api import auth as auth_api
from app.api import health as health_api
from app.api import history as history_api
from app.api import notes as notes_api
from app.api import tags as tags_api
from app.api import votes as votes_api
from app.api import workspaces as workspaces_api
from app.config import APP_VERSION, settings
from app.database import create_tables, dispose_engine
from app.errors import AppError, ValidationError
from app.utils.response import send_error

logger = logging.getLogger("notehub.app")
request_logger = logging.getLogger("notehub.request")


def setup_logging() -> None:
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stdout,
    )


def is_foreign_key_violation(exc: IntegrityError) -> bool:
    # sqlite: "FOREIGN KEY constraint failed"; postgresql: "violates foreign key constraint"
    return "foreign key" in str(exc.orig).lower()


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def _handle_app_error(request: Request, exc: AppError):
        details = exc.details if isinstance(exc, ValidationError) else None
        return send_error(exc.message, exc.status_code, details=details)

    @app.exception_handler(RequestValidationError)
    async def _handle_validation_error(request: Request, exc: RequestValidationError):
        return send_error("Validation failed", 400, error="Validation error", details=exc.errors())

    @app.exception_handler(IntegrityError)
    async def _handle_integrity_error(request: Request, exc: IntegrityError):
        logger.info("DB_CONFLICT method=%s path=%s error=%s", request.method, request.url.path, exc.orig)
        if is_foreign_key_violation(exc):
            return send_error("Referenced resource not found", 404, error="Not found")
        return send_error("Resource already exists", 409, error="Duplicate entry")

    @app.exception_handler(NoResultFound)
    async def _handle_no_result(request: Request, exc: NoResultFound):
        return send_error("Resource not found", 404, error="Not found")

    @app.exception_handler(StarletteHTTPException)
    async def _handle_http_error(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404 and exc.detail == "Not Found":
            return send_error(
                f"Route {request.method} {request.url.path} not found",
                404,
                error="Not found",
            )
        return send_error(str(exc.detail), exc.status_code, headers=getattr(exc, "headers", None))

    @app.exception_handler(Exception)
    async def _handle_unexpected(request: Request, exc: Exception):
        logger.exception("UNEXPECTED_ERROR method=%s path=%s", request.method, request.url.path)
        message = "Internal server error" if settings.is_production else (str(exc) or "Internal server error")
        return send_error(message, 500, error="Internal server error")


def create_app() -> FastAPI:
    setup_logging()

    app = FastAPI(title="NoteHub API", version=APP_VERSION)

    # 配置CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - started) * 1000
        response.headers["X-Response-Time"] = f"{duration_ms:.1f}"
        request_logger.info(
            "REQUEST method=%s path=%s status=%s duration_ms=%.1f",
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
        )
        return response

    register_exception_handlers(app)

    # 注册路由
    prefix = settings.API_PREFIX.rstrip("/")
    app.include_router(auth_api.router, prefix=f"{prefix}/auth", tags=["auth"])
    app.include_router(workspaces_api.router, prefix=f"{prefix}/workspaces", tags=["workspaces"])
    app.include_router(notes_api.router, prefix=f"{prefix}/notes", tags=["notes"])
    app.include_router(votes_api.router, prefix=f"{prefix}/notes", tags=["votes"])
    app.include_router(history_api.router, prefix=f"{prefix}/notes", tags=["history"])
    app.include_router(tags_api.router, prefix=f"{prefix}/tags", tags=["tags"])
    app.include_router(health_api.router, prefix=prefix, tags=["health"])

    @app.on_event("startup")
    async def startup():
        await create_tables()
        logger.info("NoteHub API started environment=%s prefix=%s", settings.ENVIRONMENT, prefix)

    @app.on_event("shutdown")
    async def shutdown():
        await dispose_engine()

    @app.get("/")
    async def root():
        return {"message": "NoteHub API", "version": APP_VERSION}

    return app


app = create_app()

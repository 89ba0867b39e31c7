"""Main FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from app.api.v1.router import api_router
from app.core.config import settings
from app.core.database import engine
from app.core.exceptions import AppException
from app.middleware.logging import RequestLoggingMiddleware
from app.repositories.mapping import JsonFileMappingRepository

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

# Keep SQL and multipart parsing out of the request log
for noisy in ("sqlalchemy", "sqlalchemy.engine", "python_multipart", "python_multipart.multipart"):
    logging.getLogger(noisy).setLevel(logging.WARNING)

logger = logging.getLogger(__name__)


def check_durable_store() -> bool:
    """Round-trip a trivial query to the mapping database."""
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.warning(f"Durable store unreachable: {e}")
        return False
    return True


def check_mapping_cache() -> bool:
    return JsonFileMappingRepository(settings.MAPPING_CACHE_PATH).is_writable()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Report the state of both mapping stores on startup."""
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")
    if not check_durable_store():
        logger.warning("Starting in degraded mode: mappings will be served from the local cache")
    if check_mapping_cache():
        logger.info(f"Local mapping cache: {settings.MAPPING_CACHE_PATH}")
    else:
        logger.error(
            f"Local mapping cache {settings.MAPPING_CACHE_PATH} is not writable; "
            "database outages will fail mapping writes"
        )
    yield
    logger.info("Shutting down application")
    engine.dispose()


def error_body(code: str, message: str, details: dict | None = None) -> dict:
    return {
        "success": False,
        "error": {"code": code, "message": message, "details": details or {}},
    }


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppException)
    async def app_exception_handler(request: Request, exc: AppException):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path}: {exc.code} {exc.message}")
        return JSONResponse(status_code=exc.status_code, content=exc.detail)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=422,
            content=error_body(
                "VALIDATION_ERROR",
                "Request validation failed",
                {"errors": jsonable_encoder(exc.errors())},
            ),
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception")
        return JSONResponse(
            status_code=500,
            content=error_body("INTERNAL_ERROR", "An internal server error occurred"),
        )


def create_application() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="""
Student/faculty assignment mapping for the department portal.

- **Students**: self-registered students merged with the department roster by hall ticket
- **Mappings**: one active coordinator and one active counsellor per student
- **Removal**: soft delete, the row stays for audit
- **Roster**: Excel template and bulk import
- **Degraded mode**: a local cache serves mappings while the database is down

Errors use `{"success": false, "error": {"code", "message", "details"}}`.
        """,
        openapi_url=f"{settings.API_V1_PREFIX}/openapi.json",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    @app.get("/health", tags=["Health"])
    def health_check():
        """Mapping store health: database reachability and cache writability.

        ``degraded`` means reads and writes are running on the local cache only.
        """
        database_ok = check_durable_store()
        cache_ok = check_mapping_cache()
        if database_ok and cache_ok:
            status = "healthy"
        elif database_ok or cache_ok:
            status = "degraded"
        else:
            status = "unavailable"
        return {
            "status": status,
            "app": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "durable_store": "up" if database_ok else "down",
            "mapping_cache": {
                "path": settings.MAPPING_CACHE_PATH,
                "writable": cache_ok,
            },
        }

    app.include_router(api_router, prefix=settings.API_V1_PREFIX)

    return app


app = create_application()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
    )

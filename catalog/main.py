import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import DataError, IntegrityError

from catalog.api.v1.router import api_router
from catalog.core.config import settings, setup_logging
from catalog.core.exceptions import CategoryConsistencyError, CategoryError
from catalog.db.init_db import init_database
from catalog.db.session import engine

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Creates all tables and indexes that do not exist yet
    await init_database(engine)
    yield
    await engine.dispose()


def create_app(*, init_db: bool = True) -> FastAPI:
    setup_logging()

    tags_metadata = [
        {"name": "categories", "description": "Hierarchical product categories"},
        {"name": "audit-logs", "description": "History of category changes"},
    ]

    app = FastAPI(
        title=settings.PROJECT_NAME,
        version="1.0.0",
        description="Category hierarchy management with FastAPI",
        openapi_url="/openapi.json",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_tags=tags_metadata,
        redirect_slashes=False,  # Disable automatic 307 redirects between /route and /route/
        lifespan=lifespan if init_db else None,
    )

    @app.exception_handler(CategoryError)
    async def category_error_handler(request: Request, exc: CategoryError):
        """Rejected category requests (missing ids, duplicates, bad hierarchy)"""
        logger.info("%s %s rejected: %s", request.method, request.url.path, exc.message)
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.message, "code": exc.code},
        )

    @app.exception_handler(CategoryConsistencyError)
    async def consistency_error_handler(request: Request, exc: CategoryConsistencyError):
        logger.error("Category data is inconsistent at %s: %s", request.url.path, exc)
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": str(exc), "code": exc.code},
        )

    @app.exception_handler(IntegrityError)
    async def integrity_error_handler(request: Request, exc: IntegrityError):
        """Handle database integrity errors (unique constraints, foreign keys)"""
        error_msg = str(exc.orig) if exc.orig else str(exc)
        lowered = error_msg.lower()
        if "unique" in lowered:
            detail = "The record already exists."
            status_code = 409
        elif "foreign key" in lowered:
            detail = "Other records depend on this one."
            status_code = 409
        else:
            detail = "Database error."
            status_code = 400

        logger.warning("Integrity error at %s: %s", request.url.path, error_msg)
        return JSONResponse(
            status_code=status_code,
            content={"detail": detail},
        )

    @app.exception_handler(DataError)
    async def data_error_handler(request: Request, exc: DataError):
        """Handle database data errors (invalid types, values too long)"""
        return JSONResponse(
            status_code=400,
            content={"detail": "Invalid data (wrong type or value too long)."},
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Handle Pydantic validation errors with cleaner messages"""
        errors = []
        for error in exc.errors():
            field = ".".join(str(x) for x in error["loc"] if x != "body")
            msg = error["msg"]
            errors.append(f"{field}: {msg}")

        return JSONResponse(
            status_code=422,
            content={"detail": "Validation error", "errors": errors},
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error at %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal Server Error. Please contact support."},
        )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH", "HEAD"],
        allow_headers=["*"],
        max_age=3600,  # Cache preflight requests for 1 hour
    )

    @app.middleware("http")
    async def resolve_trailing_slash(request, call_next):
        """
        Routes are declared without a trailing slash; accept the slashed
        form too, without issuing an HTTP redirect.
        """
        path = request.scope.get("path", "")
        if len(path) > 1 and path.endswith("/"):
            request.scope["path"] = path.rstrip("/") or "/"
        return await call_next(request)

    @app.get("/health", tags=["health"])
    async def health():
        return {"status": "ok"}

    app.include_router(api_router, prefix=settings.API_V1_STR)

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run("catalog.main:app", host="0.0.0.0", port=8000, reload=not settings.is_production)

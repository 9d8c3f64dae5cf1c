"""FastAPI application factory and configuration"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import Settings, load_settings
from .database import create_engine, create_session_factory, create_db_and_tables
from .logging import setup_logging
from .exception import ShopfrontException
from .mail import Mailer, create_mailer
from .schema.response import ErrorResponse, FieldError
from .security import PasswordHasher, TokenService
from .service import AuthService, OrderService
from .api import auth_router, catalog_router, order_router, user_router

logger = logging.getLogger(__name__)

HTTP_ERROR_CODES = {
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
}


def _field_errors(exc: RequestValidationError) -> list[FieldError]:
    errors = []
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        errors.append(FieldError(field=".".join(loc) or "body", message=error.get("msg", "Invalid value")))
    return errors


def create_app(
    instance_path: Path,
    settings: Settings | None = None,
    mailer: Mailer | None = None,
) -> FastAPI:
    """Create and configure FastAPI application instance

    This is the application factory function that initializes logging,
    creates the FastAPI app, wires services, configures middleware,
    registers exception handlers, and includes routers.

    Args:
        instance_path: Path to the Shopfront instance directory
        settings: Settings to use (loaded from the instance config.toml if None)
        mailer: Outbound mail collaborator (built from settings if None)

    Returns:
        Configured FastAPI application instance
    """
    # Initialize logging first
    setup_logging(instance_path)

    if settings is None:
        settings = load_settings(instance_path)

    # ==================== Database Configuration ====================

    engine = create_engine(settings.database_url(instance_path), echo=settings.database.echo)
    async_session_factory = create_session_factory(engine)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        (instance_path / "data").mkdir(parents=True, exist_ok=True)
        await create_db_and_tables(engine)
        logger.info(f"{settings.app_name} started (instance: {instance_path})")
        yield
        await engine.dispose()
        logger.info(f"{settings.app_name} stopped")

    # Create FastAPI application
    app = FastAPI(
        title=f"{settings.app_name} API",
        description="Product catalog and ordering service",
        version=settings.app_version,
        lifespan=lifespan,
    )

    # ==================== Services ====================

    if mailer is None:
        mailer = create_mailer(settings.email)
    token_service = TokenService(settings.jwt)
    hasher = PasswordHasher(settings.security.bcrypt_rounds)

    # Store in app state for dependency injection
    app.state.settings = settings
    app.state.instance_path = instance_path
    app.state.engine = engine
    app.state.async_session_factory = async_session_factory
    app.state.mailer = mailer
    app.state.token_service = token_service
    app.state.auth_service = AuthService(settings, token_service, hasher, mailer)
    app.state.order_service = OrderService(settings.orders.transaction_timeout_seconds)

    # ==================== CORS Configuration ====================

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors.allow_origins,
        allow_credentials=settings.cors.allow_credentials,
        allow_methods=settings.cors.allow_methods,
        allow_headers=settings.cors.allow_headers,
    )

    # ==================== Exception Handlers ====================

    @app.exception_handler(ShopfrontException)
    async def shopfront_exception_handler(request: Request, exc: ShopfrontException) -> JSONResponse:
        """Handle all Shopfront business exceptions

        All custom exceptions (ValidationError, NotFoundError, etc.) inherit
        from ShopfrontException and carry their own HTTP status.
        """
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(
                message=exc.message,
                error={"code": exc.code, **exc.extra},
            ).model_dump(exclude_none=True, mode="json"),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """Handle Pydantic validation errors

        This catches errors from FastAPI's automatic request validation
        (e.g., invalid email format, missing required fields, type mismatches)
        and reports them as a per-field list.
        """
        return JSONResponse(
            status_code=400,
            content=ErrorResponse(
                message="Invalid input",
                error={"code": "VALIDATION_ERROR"},
                errors=_field_errors(exc),
            ).model_dump(exclude_none=True, mode="json"),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        """Wrap framework HTTP errors (unknown route, wrong method) in ErrorResponse"""
        code = HTTP_ERROR_CODES.get(exc.status_code, "HTTP_ERROR")
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(
                message=str(exc.detail),
                error={"code": code},
            ).model_dump(exclude_none=True, mode="json"),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Log unexpected errors and hide their details from the client"""
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(
                message="Internal server error",
                error={"code": "INTERNAL_ERROR"},
            ).model_dump(exclude_none=True, mode="json"),
        )

    # ==================== Router Registration ====================

    app.include_router(auth_router, prefix="/api")
    app.include_router(order_router, prefix="/api")
    app.include_router(user_router, prefix="/api")
    app.include_router(catalog_router, prefix="/api")

    @app.get("/health", tags=["Health"])
    async def health():
        """Liveness probe"""
        return {"status": "ok"}

    return app

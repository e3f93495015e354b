"""HTTP front end: application factory, lifespan and request logging."""

import time
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger
from starlette.responses import JSONResponse

from bookshelf.api.errors import error_detail, status_for
from bookshelf.api.http.app_data import ApplicationDependencies
from bookshelf.api.http.routers import book, category, health
from bookshelf.api.utils.app_startup import configure_logging
from bookshelf.core.errors import DataAccessError, StoreConnectionError
from bookshelf.core.services import DbSessionService
from bookshelf.runtime.context import get_config

configure_logging()


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", None) or "-"


def _client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def _error_body(request: Request, detail) -> dict:
    return {"detail": detail, "request_id": _request_id(request)}


def startup(app: FastAPI) -> None:
    """Attach the database service and check the store before serving."""
    config = get_config()
    environment = config.app.environment
    logger.info("Bookshelf API starting ({})", environment)

    database_service = app.state.database_service or DbSessionService()
    app.state.app_dependencies = ApplicationDependencies(
        database_service=database_service
    )

    try:
        database_service.ping()
    except StoreConnectionError:
        if environment == "production":
            raise
        # requests answer 503 until the store is back
        logger.error("Store unreachable at start-up; continuing in degraded mode")
        return

    if config.database.verify_schema:
        database_service.verify_schema()


def shutdown(app: FastAPI) -> None:
    logger.info("Bookshelf API stopping")
    app_dependencies: ApplicationDependencies | None = getattr(
        app.state, "app_dependencies", None
    )
    if app_dependencies is not None:
        app_dependencies.database_service.dispose()


@asynccontextmanager
async def lifespan(app: FastAPI):
    startup(app)
    try:
        yield
    finally:
        shutdown(app)


def create_app(database_service: DbSessionService | None = None) -> FastAPI:
    """Build the application.

    Args:
        database_service: Service to use instead of one built from the
            configuration at start-up.
    """
    config = get_config()
    is_production = config.app.environment == "production"
    app = FastAPI(
        title="Bookshelf",
        lifespan=lifespan,
        docs_url=None if is_production else "/docs",
        redoc_url=None if is_production else "/redoc",
    )
    app.state.database_service = database_service

    cors = config.app.cors
    if is_production and "*" in cors.origins:
        raise RuntimeError(
            "CORS misconfigured: cannot use '*' with allow_credentials=True in production"
        )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors.origins,
        allow_credentials=cors.allow_credentials,
        allow_methods=cors.allow_methods,
        allow_headers=cors.allow_headers,
    )

    @app.exception_handler(DataAccessError)
    async def data_access_error_handler(
        request: Request, exc: DataAccessError
    ) -> JSONResponse:
        status = status_for(exc)
        logger.bind(status_code=int(status), error_type=type(exc).__name__).info(
            "http.data_access_error"
        )
        return JSONResponse(status_code=status, content=_error_body(request, error_detail(exc)))

    @app.exception_handler(RequestValidationError)
    async def request_validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        errors = [
            {"loc": list(err["loc"]), "msg": err["msg"], "type": err["type"]}
            for err in exc.errors()
        ]
        logger.bind(status_code=400, fields=[err["loc"] for err in errors]).info(
            "http.invalid_request"
        )
        return JSONResponse(
            status_code=400, content=_error_body(request, jsonable_encoder(errors))
        )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
        request.state.request_id = request_id
        started = time.perf_counter()

        # query strings are left out of the log, they may carry secrets
        with logger.contextualize(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
            client_ip=_client_ip(request),
        ):
            logger.info("http.request")
            try:
                response = await call_next(request)
            except Exception as exc:
                logger.bind(
                    status_code=500,
                    elapsed_ms=round((time.perf_counter() - started) * 1000, 1),
                    error_type=type(exc).__name__,
                ).exception("http.unhandled_error")
                return JSONResponse(
                    status_code=500,
                    content={"detail": "Internal Server Error", "request_id": request_id},
                    headers={"X-Request-ID": request_id},
                )

            logger.bind(
                status_code=response.status_code,
                elapsed_ms=round((time.perf_counter() - started) * 1000, 1),
            ).info("http.response")
            response.headers.setdefault("X-Request-ID", request_id)
            return response

    app.include_router(health.router)
    app.include_router(book.router, prefix="/books", tags=["books"])
    app.include_router(category.router, prefix="/categories", tags=["categories"])

    return app


app = create_app()

__all__ = ["app", "create_app", "startup", "shutdown"]

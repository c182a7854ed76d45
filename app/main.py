from contextlib import asynccontextmanager
import time
import uuid

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse

from app.core.config import Settings, get_settings
from app.core.exceptions import (
    AppError,
    app_exception_handler,
    generic_exception_handler,
    validation_exception_handler,
)
from app.core.logging import bind_request_id, clear_request_context, configure_logging, get_logger
from app.routers import customers
from app.services.accounts import AccountService
from app.storage.base import CustomerStore, get_store

log = get_logger(__name__)

API_PREFIX = "/api/v1/customer"


def _build_service(store: CustomerStore, settings: Settings) -> AccountService:
    return AccountService(
        store,
        timeout_seconds=settings.request_timeout_seconds,
        max_write_attempts=settings.account_max_write_attempts,
    )


def create_app(store: CustomerStore | None = None, settings: Settings | None = None) -> FastAPI:
    """Build the API; an injected store skips database initialisation."""
    settings = settings or get_settings()
    configure_logging(debug=settings.debug)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Initialise Sentry, the record store and the AccountService for the app lifecycle."""
        if settings.sentry_dsn:
            import sentry_sdk
            sentry_sdk.init(dsn=settings.sentry_dsn, environment=settings.env, traces_sample_rate=0.1)
            log.info("startup", msg="Sentry enabled")
        client = None
        if store is None:
            if settings.store_backend == "mongo":
                from app.db.init import init_db
                client = await init_db()
                log.info("startup", msg="DB connected")
            app.state.account_service = _build_service(get_store(settings.store_backend), settings)
            log.info("startup", store_backend=settings.store_backend)
        try:
            yield
        finally:
            if client is not None:
                client.close()

    app = FastAPI(
        title="Customer Service API",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def request_id_middleware(request, call_next):
        clear_request_context()
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id
        bind_request_id(request_id)
        start = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start) * 1000
        log.info(
            "request",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=round(duration_ms, 2),
        )
        response.headers["X-Request-ID"] = request_id
        return response

    app.add_exception_handler(AppError, app_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    app.include_router(customers.router, prefix=API_PREFIX, tags=["customer"])
    prefix = settings.service_path_prefix.strip("/")
    if prefix:
        app.include_router(customers.router, prefix=f"/{prefix}{API_PREFIX}", include_in_schema=False)

    if store is not None:
        app.state.account_service = _build_service(store, settings)

    @app.get("/", response_class=PlainTextResponse)
    async def index():
        log.info("index", service="customer-service")
        return "Customer service."

    @app.get("/health")
    async def health():
        """Health check for load balancers and monitoring."""
        return {"status": "ok"}

    return app


app = create_app()

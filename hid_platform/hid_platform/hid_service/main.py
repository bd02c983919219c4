"""
HID Backend - health identity API: credentials, profile and medical records
"""
from contextlib import asynccontextmanager
from typing import Optional
import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import Settings
from .db import Database
from .exceptions import ServiceError
from .notifier import EmailNotifier
from .routes import auth, dev_monitor, medical, users
from .service import CredentialService
from .utils.event_logger import configure_logging

logger = logging.getLogger(__name__)


def _validation_message(exc: RequestValidationError) -> str:
    """First validation problem as a single client-facing sentence."""
    errors = exc.errors()
    if not errors:
        return "Invalid request."
    error = errors[0]
    loc = [str(part) for part in error.get("loc", ()) if part != "body"]
    field = ".".join(loc) or "body"
    if error.get("type") == "missing":
        return f"{field} is required."
    if error.get("type") == "value_error":
        return str(error.get("msg", "")).removeprefix("Value error, ")
    if error.get("type") == "json_invalid":
        return "Request body is not valid JSON."
    return f"Invalid value for {field}: {error.get('msg')}"


def register_exception_handlers(app: FastAPI) -> None:
    """Every error leaves the API as {"error": "<message>"}."""

    @app.exception_handler(ServiceError)
    async def service_error_handler(_request: Request, exc: ServiceError):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(_request: Request, exc: StarletteHTTPException):
        return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)},
                            headers=getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(_request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST,
                            content={"error": _validation_message(exc)})

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                            content={"error": "Internal server error."})


def create_app(settings: Optional[Settings] = None,
               notifier: Optional[EmailNotifier] = None) -> FastAPI:
    """
    Build the application and its object graph.

    Settings are read from the environment when not given; a missing
    JWT_SECRET fails here, before the app can serve a request.
    """
    settings = settings or Settings()
    configure_logging(settings)

    database = Database(settings)
    credential_service = CredentialService.from_settings(settings, database, notifier)

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        database.init_db()
        if database.check_db_connection():
            logger.info("Database connected!")
        else:
            logger.error("DB connection failed")
        yield
        database.dispose()

    app = FastAPI(
        title="HID Backend",
        description="Health identity API: credentials, profile and medical records",
        version="1.0.0",
        lifespan=lifespan
    )
    app.state.settings = settings
    app.state.database = database
    app.state.credential_service = credential_service

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    app.include_router(auth.router)
    app.include_router(users.router)
    app.include_router(medical.router)
    app.include_router(dev_monitor.router)

    @app.get("/")
    def root():
        return {"service": "HID Backend", "version": "1.0.0", "status": "running"}

    return app

"""
Internship Portal - Main Application

FastAPI backend with:
- MongoDB for every record (users, internships, applications, notifications, meetings)
- JWT authentication with intern / mentor / admin roles
- Resume uploads stored on local disk
- SMTP notices to posting owners

Run: uvicorn internship_portal.main:create_app --factory --reload
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.exceptions import HTTPException as StarletteHTTPException

from internship_portal import __version__
from internship_portal.api.routes import api_router
from internship_portal.core.config import Settings, get_settings
from internship_portal.core.errors import DependencyError, PortalError
from internship_portal.core.logging_config import setup_logging
from internship_portal.db.mongodb import MongoStore
from internship_portal.services.email_service import EmailService

logger = logging.getLogger(__name__)


def _error_body(message: str, details=None) -> dict:
    body = {"error": message}
    if details is not None:
        body["details"] = details
    return body


def register_exception_handlers(app: FastAPI) -> None:
    """Every error leaves the API as {"error": message}."""

    @app.exception_handler(PortalError)
    async def portal_error_handler(request: Request, exc: PortalError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content=_error_body(exc.message, exc.details))

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        details = [
            {"field": ".".join(str(part) for part in err.get("loc", ())), "message": err.get("msg")}
            for err in exc.errors()
        ]
        return JSONResponse(status_code=400, content=_error_body("Validation failed", details))

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(status_code=exc.status_code, content=_error_body(str(exc.detail)),
                            headers=getattr(exc, "headers", None))

    @app.exception_handler(PyMongoError)
    async def mongo_error_handler(request: Request, exc: PyMongoError):
        logger.error("Database error on %s %s: %s", request.method, request.url.path, exc)
        error = DependencyError("Database error")
        return JSONResponse(status_code=error.status_code, content=_error_body(error.message))

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content=_error_body("Server error"))


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[MongoStore] = None,
    mailer=None
) -> FastAPI:
    """
    Build the application.

    Args:
        settings: defaults to get_settings(), which fails without MONGODB_URI
        store: defaults to a MongoStore on settings.mongodb_uri
        mailer: anything with send(to, subject, message); defaults to EmailService
    """
    settings = settings or get_settings()
    setup_logging(settings.log_level)

    store = store or MongoStore(settings.mongodb_uri, settings.mongodb_db)
    mailer = mailer if mailer is not None else EmailService(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        try:
            store.init_indexes()
        except PyMongoError as e:
            logger.warning("MongoDB index initialization failed: %s", e)
        logger.info("Internship Portal API ready on port %s", settings.port)
        yield
        store.close()
        if hasattr(mailer, "close"):
            mailer.close()
        logger.info("Internship Portal API stopped")

    app = FastAPI(
        title="Internship Portal API",
        description="""
        Internship portal backend.

        ## Features
        - **Authentication**: JWT-based auth for interns, mentors and admins
        - **Internships**: Post, search, filter and apply with a resume
        - **Applications**: Review workflow from Submitted to Hired
        - **Notifications**: Direct and role-broadcast notices
        - **Dashboards**: Role-scoped summaries
        """,
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        debug=settings.debug,
        lifespan=lifespan
    )
    app.state.settings = settings
    app.state.store = store
    app.state.mailer = mailer

    # One shared per-client-IP budget across every /api route
    limiter = Limiter(key_func=get_remote_address, enabled=settings.rate_limit_enabled)
    app.state.limiter = limiter

    @limiter.shared_limit(settings.rate_limit, scope="api")
    async def enforce_rate_limit(request: Request):
        return None

    @app.exception_handler(RateLimitExceeded)
    async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
        logger.warning("Rate limit hit by %s on %s", get_remote_address(request), request.url.path)
        return JSONResponse(status_code=429,
                            content=_error_body("Too many requests, please try again later."))

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    # Include API routes
    app.include_router(api_router, prefix="/api", dependencies=[Depends(enforce_rate_limit)])

    @app.get("/", tags=["Health"])
    async def root():
        return {"status": "healthy", "app": "Internship Portal API", "version": __version__}

    @app.get("/health", tags=["Health"])
    def health_check():
        """Store connectivity check."""
        connected = store.ping()
        return JSONResponse(
            status_code=200 if connected else 503,
            content={"status": "healthy" if connected else "degraded",
                     "mongodb": "connected" if connected else "disconnected"}
        )

    return app

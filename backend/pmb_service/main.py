"""FastAPI application factory and cross-cutting HTTP wiring.

`create_app` builds one engine per application, registers the request
logging middleware, CORS, the central error handlers and the routers
under `/api/v1`.

Endpoints implemented:
- GET /
- GET /api/v1/health
- /api/v1/api-keys...
- /api/v1/applicants...
- /api/v1/study-programs...
"""

import json
import logging
import time
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from . import __version__
from .config import Settings
from .controllers import api_keys_router, applicants_router, respond, study_programs_router
from .database import build_engine, create_db_and_tables
from .errors import register_error_handlers
from .schemas import Envelope

API_PREFIX = "/api/v1"
SERVICE_NAME = "PMB Service - Student Management API"

logger = logging.getLogger("pmb_service.api")


def _configure_logging(level: str):
    if not logging.getLogger().handlers:
        logging.basicConfig(level=level)
    logging.getLogger("pmb_service").setLevel(level)


def build_api_router() -> APIRouter:
    """Declare the versioned routes; protection is set per router."""
    router = APIRouter()

    @router.get("/health")
    def health():
        """Lightweight health check for uptime monitoring."""
        content = Envelope(success=True, message="API is running").to_content()
        content["timestamp"] = datetime.now(timezone.utc).isoformat()
        return JSONResponse(content)

    router.include_router(api_keys_router)
    router.include_router(applicants_router)
    router.include_router(study_programs_router)
    return router


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the application around a single engine for `settings.DATABASE_URL`."""
    settings = settings or Settings()
    _configure_logging(settings.LOG_LEVEL)
    engine = build_engine(settings.DATABASE_URL)

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        create_db_and_tables(engine)
        logger.info("database ready env=%s", settings.ENV)
        try:
            yield
        finally:
            engine.dispose()

    app = FastAPI(title=SERVICE_NAME, version=__version__, lifespan=lifespan)
    app.state.settings = settings
    app.state.engine = engine

    # Wide-open CORS keeps browser-based admin tools working in dev.
    if settings.ALLOW_DEV_CORS:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_credentials=True,
            allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
            allow_headers=["*"],
        )

    @app.middleware("http")
    async def request_context_middleware(request: Request, call_next):
        req_id = request.headers.get("X-Request-ID", uuid.uuid4().hex)
        request.state.request_id = req_id
        started = time.perf_counter()
        response: Response
        try:
            response = await call_next(request)
        except Exception:
            elapsed_ms = round((time.perf_counter() - started) * 1000.0, 2)
            logger.exception(
                "request_failed %s",
                json.dumps(
                    {
                        "request_id": req_id,
                        "path": request.url.path,
                        "method": request.method,
                        "duration_ms": elapsed_ms,
                        "client": request.client.host if request.client else "unknown",
                    },
                    ensure_ascii=True,
                ),
            )
            raise
        response.headers["X-Request-ID"] = req_id
        elapsed_ms = round((time.perf_counter() - started) * 1000.0, 2)
        key_info = getattr(request.state, "api_key_info", None)
        logger.info(
            "request_done %s",
            json.dumps(
                {
                    "request_id": req_id,
                    "path": request.url.path,
                    "method": request.method,
                    "status_code": response.status_code,
                    "duration_ms": elapsed_ms,
                    "client": request.client.host if request.client else "unknown",
                    "api_key": key_info["name"] if key_info else None,
                },
                ensure_ascii=True,
            ),
        )
        return response

    register_error_handlers(app, production=settings.is_production)

    @app.get("/")
    def root():
        return respond(SERVICE_NAME, {"version": __version__, "documentation": f"{API_PREFIX}/health"})

    app.include_router(build_api_router(), prefix=API_PREFIX)
    return app


# served by `uvicorn pmb_service.main:app`
app = create_app()

"""FastAPI application entrypoint and HTTP controllers.

This module defines the HTTP endpoints of the AprendIA Chiapas
registration backend. Controllers are intentionally thin: they accept
requests, delegate to services, and return JSON envelopes that always
carry a `success` flag.

Endpoints implemented:
- GET /
- GET /api/health
- POST /api/register
- GET /api/users
- GET /api/stats
"""

import json
import logging
import time
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import __version__, services
from .config import Settings, settings as default_settings
from .database import Database, get_database
from .errors import DuplicateEmailError, StorageUnavailableError, collect_field_errors
from .models import RegistrantCreate
from .schemas import RegisteredUserOut, RegistrantOut

logger = logging.getLogger("aprendia.api")

API_MESSAGE = "API de AprendIA Chiapas funcionando correctamente"
DOCUMENTATION_URL = "https://github.com/tu-repo/aprendia-chiapas"
ENDPOINTS = {
    "health": "/api/health",
    "register": "/api/register",
    "users": "/api/users",
    "stats": "/api/stats",
}
AVAILABLE_ENDPOINTS = [
    "GET /",
    "GET /api/health",
    "POST /api/register",
    "GET /api/users",
    "GET /api/stats",
]


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _requested_path(request: Request) -> str:
    # echo exactly what the client sent, percent-escapes included
    raw = request.scope.get("raw_path")
    path = raw.decode("latin-1") if raw else request.url.path
    query = request.scope.get("query_string", b"").decode("latin-1")
    if query:
        path = f"{path}?{query}"
    return path


def _request_log_payload(request: Request, req_id: str, started: float, **extra) -> str:
    payload = {
        "request_id": req_id,
        "path": request.url.path,
        "method": request.method,
        **extra,
        "duration_ms": round((time.perf_counter() - started) * 1000.0, 2),
        "client": request.client.host if request.client else "unknown",
    }
    return json.dumps(payload, ensure_ascii=True)


def create_app(settings: Optional[Settings] = None, database: Optional[Database] = None) -> FastAPI:
    """Build the application around an explicit settings/database pair.

    The database connects during startup; a failed connection is logged
    and the API keeps serving, reporting the state on `/api/health`.
    """
    settings = settings or default_settings
    database = database or Database(settings.DATABASE_URL, echo=settings.DB_ECHO)

    if not logging.getLogger().handlers:
        logging.basicConfig(level=settings.LOG_LEVEL)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if database.engine is None:
            database.connect()
        yield
        database.disconnect()

    app = FastAPI(title="AprendIA Chiapas API", version=__version__, lifespan=lifespan)
    app.state.settings = settings
    app.state.database = database

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials="*" not in settings.CORS_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    def _internal_error(message: str, exc: Exception, include_detail: bool = False) -> JSONResponse:
        body = {"success": False, "message": message}
        if include_detail:
            body["error"] = str(exc) if settings.is_development else "Error interno"
        return JSONResponse(status_code=500, content=body)

    @app.middleware("http")
    async def request_context_middleware(request: Request, call_next):
        req_id = request.headers.get("X-Request-ID", uuid.uuid4().hex)
        request.state.request_id = req_id
        started = time.perf_counter()
        response: Response
        try:
            response = await call_next(request)
        except Exception:
            logger.exception("request_failed %s", _request_log_payload(request, req_id, started))
            raise
        response.headers["X-Request-ID"] = req_id
        logger.info(
            "request_done %s",
            _request_log_payload(request, req_id, started, status_code=response.status_code),
        )
        return response

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        errors = collect_field_errors(exc.errors())
        logger.warning("validation failed on %s: %s", request.url.path, [e["field"] for e in errors])
        return JSONResponse(
            status_code=400,
            content={"success": False, "message": "Datos de entrada inválidos", "errors": errors},
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        # a known path with another method is still an unmatched route
        if exc.status_code in (404, 405):
            return JSONResponse(
                status_code=404,
                content={
                    "success": False,
                    "message": "Endpoint no encontrado",
                    "availableEndpoints": AVAILABLE_ENDPOINTS,
                    "requestedPath": _requested_path(request),
                },
            )
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "message": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.error("unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
        return _internal_error("Error interno del servidor", exc, include_detail=True)

    @app.get("/")
    def root():
        """Static directory of the available endpoints."""
        return {
            "success": True,
            "message": API_MESSAGE,
            "version": __version__,
            "endpoints": ENDPOINTS,
            "documentation": DOCUMENTATION_URL,
            "timestamp": _now_iso(),
        }

    @app.get("/api/health")
    def health(db: Database = Depends(get_database)):
        """Liveness plus the connector's current state; never queries."""
        logger.debug("health check requested")
        return {
            "success": True,
            "message": API_MESSAGE,
            "timestamp": _now_iso(),
            "version": __version__,
            "database": "Conectado" if db.connected else "Desconectado",
        }

    @app.post("/api/register", status_code=201)
    def register(payload: RegistrantCreate, db: Database = Depends(get_database)):
        """Register a new person.

        The payload is validated before this runs. A second registration
        with the same email (any case) is rejected with 409.
        """
        logger.info("registration received municipality=%s education=%s",
                    payload.municipality.value, payload.education.value)
        try:
            with db.session() as session:
                registrant = services.RegistrationService(session).register(payload)
                user = RegisteredUserOut.model_validate(registrant).to_json()
        except DuplicateEmailError:
            logger.warning("duplicate registration for %s", payload.email)
            return JSONResponse(
                status_code=409,
                content={"success": False, "message": "Este email ya está registrado en el programa"},
            )
        except (SQLAlchemyError, StorageUnavailableError) as exc:
            logger.error("registration failed: %s", exc)
            return _internal_error("Error interno del servidor", exc, include_detail=True)
        return {
            "success": True,
            "message": "Registro exitoso. ¡Bienvenido a AprendIA Chiapas!",
            "user": user,
        }

    @app.get("/api/users")
    def list_users(db: Database = Depends(get_database)):
        """List every active registrant (no pagination)."""
        try:
            with db.session() as session:
                users = [RegistrantOut.model_validate(r).to_json()
                         for r in services.RegistrationService(session).list_active()]
        except (SQLAlchemyError, StorageUnavailableError) as exc:
            logger.error("listing registrants failed: %s", exc)
            return _internal_error("Error obteniendo usuarios", exc)
        return {"success": True, "count": len(users), "users": users}

    @app.get("/api/stats")
    def stats(db: Database = Depends(get_database)):
        """Totals by municipality and education over active registrants."""
        try:
            with db.session() as session:
                data = services.RegistrationService(session).stats()
        except (SQLAlchemyError, StorageUnavailableError) as exc:
            logger.error("computing stats failed: %s", exc)
            return _internal_error("Error obteniendo estadísticas", exc)
        return {"success": True, "data": data}

    return app


app = create_app()


def run():
    """Serve `app` with uvicorn on the configured host and port."""
    import uvicorn

    port = default_settings.PORT
    logger.info("server starting on port %s", port)
    logger.info("API available at http://localhost:%s/api", port)
    logger.info("health check: http://localhost:%s/api/health", port)
    logger.info("environment: %s", default_settings.ENV)
    uvicorn.run(app, host=default_settings.HOST, port=port)


if __name__ == "__main__":
    run()

"""
HTTP surface of the trade ledger.

``create_app`` builds a FastAPI application bound to one session factory,
one settings object and one clock.  Ledger errors are mapped to status
codes by category:

    LedgerValidationError, CurrencyError  -> 400
    NotFoundError                         -> 404
    ConsistencyError                      -> 409
    StorageError, SQLAlchemyError         -> 500 with a generic message

Every error body is ``{"error": <code>, "message": <text>}``.
"""

from __future__ import annotations

import uuid

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from ledger_api.routes import router
from ledger_config import get_active_config
from ledger_config.schema import LedgerSettings
from ledger_kernel.db.engine import create_tables, get_session_factory, init_engine_from_url
from ledger_kernel.domain.clock import Clock, SystemClock
from ledger_kernel.exceptions import (
    ConsistencyError,
    CurrencyError,
    LedgerError,
    LedgerValidationError,
    NotFoundError,
    StorageError,
)
from ledger_kernel.logging_config import LogContext, configure_logging, get_logger

logger = get_logger("api")

REQUEST_ID_HEADER = "X-Request-ID"
STORAGE_FAILURE_MESSAGE = "Storage failure, please try again"


def _status_for(exc: LedgerError) -> int:
    if isinstance(exc, (LedgerValidationError, CurrencyError)):
        return 400
    if isinstance(exc, NotFoundError):
        return 404
    if isinstance(exc, ConsistencyError):
        return 409
    return 500


async def _ledger_error_handler(request: Request, exc: LedgerError) -> JSONResponse:
    status = _status_for(exc)
    if status >= 500:
        logger.error("request_failed", extra={"path": request.url.path, "error_code": exc.code})
        return JSONResponse(status_code=status, content={"error": exc.code, "message": STORAGE_FAILURE_MESSAGE})
    logger.info(
        "request_rejected",
        extra={"path": request.url.path, "error_code": exc.code, "status": status},
    )
    return JSONResponse(status_code=status, content={"error": exc.code, "message": str(exc)})


async def _storage_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error(
        "storage_failure",
        extra={"path": request.url.path, "error_type": type(exc).__name__},
    )
    return JSONResponse(
        status_code=500,
        content={"error": StorageError.code, "message": STORAGE_FAILURE_MESSAGE},
    )


async def _request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    problems = "; ".join(
        f"{'.'.join(str(p) for p in err.get('loc', ()) if p != 'body')}: {err.get('msg', '')}"
        for err in exc.errors()
    )
    return JSONResponse(
        status_code=400,
        content={"error": LedgerValidationError.code, "message": problems or "Invalid request"},
    )


def create_app(
    settings: LedgerSettings | None = None,
    session_factory: sessionmaker[Session] | None = None,
    clock: Clock | None = None,
) -> FastAPI:
    """
    Build the application.

    Without a ``session_factory`` the engine is initialized from
    ``settings.database``, tables are created, and the configured default
    accounts are seeded.
    """
    settings = settings or get_active_config()
    configure_logging(level=settings.log_level)

    if session_factory is None:
        init_engine_from_url(settings.database.url, echo=settings.database.echo)
        create_tables()
        session_factory = get_session_factory()
        _seed_defaults(session_factory, settings, clock)

    app = FastAPI(title="Trade Ledger", version="0.1.0")
    app.state.settings = settings
    app.state.session_factory = session_factory
    app.state.clock = clock or SystemClock()

    app.add_exception_handler(LedgerError, _ledger_error_handler)
    app.add_exception_handler(SQLAlchemyError, _storage_error_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)

    @app.middleware("http")
    async def bind_request_id(request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        with LogContext.bind(request_id=request_id):
            response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response

    app.include_router(router)
    return app


def _seed_defaults(
    session_factory: sessionmaker[Session],
    settings: LedgerSettings,
    clock: Clock | None,
) -> None:
    from ledger_services.orchestrator import LedgerOrchestrator

    session = session_factory()
    try:
        LedgerOrchestrator(session, settings=settings, clock=clock).seed_default_accounts()
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()

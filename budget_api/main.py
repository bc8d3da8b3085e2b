# budget_api/main.py
"""
Application factory.

Run locally:
  uvicorn budget_api.main:create_app --factory --reload
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from budget_api.config import Settings, get_settings
from budget_api.db import Database
from budget_api.errors import AppError
from budget_api.observability import RequestLogMiddleware, configure_logging
from budget_api.routers.accounts import router as accounts_router
from budget_api.routers.auth import router as auth_router
from budget_api.routers.budgets import router as budgets_router
from budget_api.routers.categories import router as categories_router
from budget_api.routers.system import router as system_router
from budget_api.routers.transactions import router as transactions_router
from budget_api.scheduler import CleanupScheduler
from budget_api.security import PasswordHasher, TokenSigner
from budget_api.services.email import EmailSender

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    state = app.state
    if state.settings.is_development:
        state.db.create_tables()  # production runs `alembic upgrade head`
    state.scheduler.start()
    try:
        yield
    finally:
        state.scheduler.stop()
        state.db.dispose()


def _validation_details(exc: RequestValidationError) -> list[dict]:
    details = []
    for err in exc.errors():
        # loc is ("body", "amountCents") / ("query", "limit") / ...
        loc = [str(part) for part in err.get("loc", ())]
        details.append({"field": ".".join(loc[1:]) or ".".join(loc), "message": err.get("msg", "")})
    return details


def _install_error_handlers(app: FastAPI, settings: Settings) -> None:
    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={
                "error": "VALIDATION_ERROR",
                "message": "Request validation failed",
                "details": _validation_details(exc),
            },
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        message = str(exc) if settings.is_development else "Internal server error"
        return JSONResponse(
            status_code=500, content={"error": "INTERNAL", "message": message}
        )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging()

    app = FastAPI(title="Budget API", version="0.1.0", lifespan=lifespan)

    # Collaborators live on app.state so dependencies never import singletons
    db = Database(settings.database_url)
    app.state.settings = settings
    app.state.db = db
    app.state.signer = TokenSigner.from_settings(settings)
    app.state.hasher = PasswordHasher(settings.bcrypt_rounds)
    app.state.email = EmailSender(settings)
    app.state.scheduler = CleanupScheduler(db, settings.token_cleanup_interval_minutes)

    # Middleware order: CORS outermost, then request logging
    app.add_middleware(RequestLogMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    _install_error_handlers(app, settings)

    # Routers
    app.include_router(system_router)
    app.include_router(auth_router)
    app.include_router(accounts_router)
    app.include_router(categories_router)
    app.include_router(transactions_router)
    app.include_router(budgets_router)

    logger.info(
        "Budget API ready: env=%s email=%s", settings.app_env, app.state.email.provider
    )
    return app

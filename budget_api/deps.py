# budget_api/deps.py
"""
FastAPI dependencies.

App-scoped collaborators (settings, signer, hasher, email sender) are built
once in create_app() and read from request.app.state here, so routers never
import module-level singletons.
"""

from __future__ import annotations

import logging

from fastapi import Depends, Request
from sqlmodel import Session

from budget_api.config import Settings
from budget_api.db import get_session
from budget_api.errors import TokenRevoked, Unauthorized
from budget_api.security import AuthContext, PasswordHasher, TokenSigner
from budget_api.services.auth import AuthService
from budget_api.services.email import EmailSender
from budget_api.services.tokens import is_token_blacklisted

logger = logging.getLogger(__name__)


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_signer(request: Request) -> TokenSigner:
    return request.app.state.signer


def get_hasher(request: Request) -> PasswordHasher:
    return request.app.state.hasher


def get_email_sender(request: Request) -> EmailSender:
    return request.app.state.email


def get_auth_service(
    session: Session = Depends(get_session),
    settings: Settings = Depends(get_app_settings),
    hasher: PasswordHasher = Depends(get_hasher),
    signer: TokenSigner = Depends(get_signer),
    email: EmailSender = Depends(get_email_sender),
) -> AuthService:
    return AuthService(session, settings, hasher, signer, email)


def _bearer_token(request: Request) -> str:
    header = request.headers.get("Authorization", "")
    if not header.startswith("Bearer "):
        raise Unauthorized()
    token = header[len("Bearer "):].strip()
    if not token:
        raise Unauthorized()
    return token


def require_auth(
    request: Request,
    session: Session = Depends(get_session),
    signer: TokenSigner = Depends(get_signer),
    settings: Settings = Depends(get_app_settings),
) -> AuthContext:
    """
    Per-request guard: a valid, unrevoked access token or 401.
    Usage (inside route):  ctx: AuthContext = Depends(require_auth)
    """
    token = _bearer_token(request)
    claims = signer.verify_access(token)

    try:
        revoked = is_token_blacklisted(session, token)
    except Exception:
        logger.exception("blacklist lookup failed")
        if not settings.token_blacklist_fail_open:
            raise Unauthorized()
        revoked = False
    if revoked:
        raise TokenRevoked()

    ctx = AuthContext(user_id=claims["sub"], token=token)
    request.state.user_id = ctx.user_id  # for the request log line
    return ctx


__all__ = [
    "get_app_settings",
    "get_auth_service",
    "get_email_sender",
    "get_hasher",
    "get_signer",
    "require_auth",
]

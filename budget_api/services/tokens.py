# budget_api/services/tokens.py
"""
Token bookkeeping in the store.

- Blacklist: revoked access tokens, kept until their own exp passes.
- Single-use tokens: password resets and email verifications. Consumption is
  one conditional UPDATE so two racing requests can never both succeed.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Type, Union

from sqlalchemy import delete, update
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from budget_api.errors import InvalidToken
from budget_api.models import (
    BlacklistedToken,
    EmailVerificationToken,
    PasswordResetToken,
    utcnow,
)
from budget_api.security import TokenSigner, random_token

logger = logging.getLogger(__name__)

SingleUseModel = Union[Type[PasswordResetToken], Type[EmailVerificationToken]]

PASSWORD_RESET_TTL = timedelta(hours=1)
EMAIL_VERIFICATION_TTL = timedelta(hours=24)


# ------------ Blacklist ------------


def blacklist_token(
    session: Session,
    token: str,
    user_id: str,
    reason: str = "logout",
    *,
    commit: bool = True,
) -> BlacklistedToken:
    """
    Revoke an access token. The row expires together with the token, so
    cleanup can drop it as soon as the token would be rejected anyway.
    Blacklisting an already-revoked token is a no-op.

    commit=False only stages the row, for callers that commit it together
    with their own changes.
    """
    existing = session.exec(
        select(BlacklistedToken).where(BlacklistedToken.token == token)
    ).first()
    if existing:
        return existing

    row = BlacklistedToken(
        token=token,
        user_id=user_id,
        reason=reason,
        expires_at=TokenSigner.expiry_of(token),
    )
    session.add(row)
    if not commit:
        return row
    try:
        session.commit()
    except IntegrityError:
        # same token revoked by a concurrent request
        session.rollback()
        existing = session.exec(
            select(BlacklistedToken).where(BlacklistedToken.token == token)
        ).first()
        if existing is None:
            raise
        return existing
    session.refresh(row)
    logger.info("token blacklisted for user=%s reason=%s", user_id, reason)
    return row


def is_token_blacklisted(session: Session, token: str) -> bool:
    stmt = select(BlacklistedToken.id).where(BlacklistedToken.token == token).limit(1)
    return session.exec(stmt).first() is not None


def cleanup_expired_tokens(session: Session) -> int:
    """
    Delete blacklist rows whose token has expired, plus expired reset and
    verification tokens. Returns the number of blacklist rows removed.
    """
    now = utcnow()
    result = session.exec(
        delete(BlacklistedToken).where(BlacklistedToken.expires_at < now)
    )
    removed = result.rowcount or 0
    for model in (PasswordResetToken, EmailVerificationToken):
        session.exec(delete(model).where(model.expires_at < now))
    session.commit()
    logger.info("cleanup: removed %s expired blacklisted token(s)", removed)
    return removed


# ------------ Single-use tokens ------------


def create_single_use_token(
    session: Session, model: SingleUseModel, user_id: str, lifetime: timedelta
) -> str:
    """Insert a fresh random token for user_id (caller commits) and return it."""
    raw = random_token()
    session.add(model(user_id=user_id, token=raw, expires_at=utcnow() + lifetime))
    return raw


def consume_single_use_token(session: Session, model: SingleUseModel, raw: str) -> str:
    """
    Mark the token used if, and only if, it is known, unused and unexpired.
    Returns the owning user id. Does not commit: the caller commits together
    with the action the token gates.
    """
    owner = session.exec(select(model.user_id).where(model.token == raw)).first()
    if owner is None:
        raise InvalidToken()

    stmt = (
        update(model)
        .where(
            model.token == raw,
            model.used == False,  # noqa: E712
            model.expires_at > utcnow(),
        )
        .values(used=True)
    )
    result = session.exec(stmt)
    if result.rowcount != 1:
        session.rollback()
        raise InvalidToken()
    return owner


__all__ = [
    "PASSWORD_RESET_TTL",
    "EMAIL_VERIFICATION_TTL",
    "blacklist_token",
    "is_token_blacklisted",
    "cleanup_expired_tokens",
    "create_single_use_token",
    "consume_single_use_token",
]

# budget_api/security.py
from __future__ import annotations

import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt
from passlib.context import CryptContext

from budget_api.config import Settings
from budget_api.errors import InvalidRefreshToken, InvalidToken, Unauthorized

ALGORITHM = "HS256"
REFRESH_TYPE = "refresh"


# ------------ Password helpers ------------


class PasswordHasher:
    """bcrypt via passlib; the work factor comes from settings."""

    def __init__(self, rounds: int = 12) -> None:
        self._pwd = CryptContext(
            schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds
        )

    def hash(self, plain: str) -> str:
        """Return a secure hash for a plaintext password."""
        return self._pwd.hash(plain)

    def verify(self, plain: str, hashed: str) -> bool:
        """Verify a plaintext password against a stored hash."""
        return self._pwd.verify(plain, hashed)

    def dummy_verify(self) -> None:
        """Burn the same time as verify() when there is no user to check."""
        self._pwd.dummy_verify()


# ------------ Token helpers ------------


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str


@dataclass(frozen=True)
class AuthContext:
    """Who is calling: produced by the auth guard, passed into handlers."""

    user_id: str
    token: str  # raw access token, needed to revoke it


def random_token() -> str:
    """Opaque single-use token for password resets and email verification."""
    return secrets.token_hex(32)


class TokenSigner:
    """
    Issues and verifies JWTs.

    Access and refresh tokens are signed with different secrets, and refresh
    tokens carry typ="refresh", so neither can be replayed as the other.
    """

    def __init__(
        self,
        access_secret: str,
        refresh_secret: str,
        access_ttl: timedelta = timedelta(minutes=15),
        refresh_ttl: timedelta = timedelta(days=30),
    ) -> None:
        self._access_secret = access_secret
        self._refresh_secret = refresh_secret
        self.access_ttl = access_ttl
        self.refresh_ttl = refresh_ttl

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenSigner":
        return cls(
            settings.jwt_access_secret,
            settings.jwt_refresh_secret,
            access_ttl=timedelta(minutes=settings.access_token_minutes),
            refresh_ttl=timedelta(days=settings.refresh_token_days),
        )

    def _sign(
        self, claims: dict[str, Any], secret: str, ttl: timedelta
    ) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            **claims,
            "iat": now,
            "exp": now + ttl,
            "jti": secrets.token_hex(8),
        }
        return jwt.encode(payload, secret, algorithm=ALGORITHM)

    def issue_pair(self, user_id: str) -> TokenPair:
        return TokenPair(
            access_token=self._sign(
                {"sub": user_id}, self._access_secret, self.access_ttl
            ),
            refresh_token=self._sign(
                {"sub": user_id, "typ": REFRESH_TYPE},
                self._refresh_secret,
                self.refresh_ttl,
            ),
        )

    def verify_access(self, token: str) -> dict[str, Any]:
        try:
            claims = jwt.decode(
                token,
                self._access_secret,
                algorithms=[ALGORITHM],
                options={"require": ["exp", "sub"]},
            )
        except jwt.InvalidTokenError as exc:
            raise Unauthorized() from exc
        if claims.get("typ") == REFRESH_TYPE:
            raise Unauthorized()
        return claims

    def verify_refresh(self, token: str) -> dict[str, Any]:
        try:
            claims = jwt.decode(
                token,
                self._refresh_secret,
                algorithms=[ALGORITHM],
                options={"require": ["exp", "sub"]},
            )
        except jwt.InvalidTokenError as exc:
            raise InvalidRefreshToken() from exc
        if claims.get("typ") != REFRESH_TYPE:
            raise InvalidRefreshToken()
        return claims

    @staticmethod
    def expiry_of(token: str) -> datetime:
        """
        Read the exp claim without checking the signature.
        Returns aware UTC.
        """
        try:
            claims = jwt.decode(token, options={"verify_signature": False})
        except jwt.InvalidTokenError as exc:
            raise InvalidToken("Invalid token format") from exc
        exp = claims.get("exp")
        if not isinstance(exp, (int, float)):
            raise InvalidToken("Invalid token format")
        return datetime.fromtimestamp(exp, tz=timezone.utc)


__all__ = [
    "AuthContext",
    "PasswordHasher",
    "TokenPair",
    "TokenSigner",
    "random_token",
]

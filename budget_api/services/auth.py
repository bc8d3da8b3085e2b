# budget_api/services/auth.py
"""
Account lifecycle: register, login, refresh, password reset, email
verification, logout/revocation and account deletion.

Failures that could reveal whether an email is registered are made
indistinguishable: login returns the same InvalidCredentials for an unknown
email and a wrong password, and forgot-password / resend-verification always
report success.
"""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import delete, update
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from budget_api.config import Settings
from budget_api.errors import (
    EmailDeliveryError,
    EmailInUse,
    EmailNotVerified,
    InvalidCredentials,
    InvalidRefreshToken,
    NotFound,
)
from budget_api.models import (
    Account,
    BudgetItem,
    BudgetMonth,
    Category,
    EmailVerificationToken,
    PasswordResetToken,
    Transaction,
    User,
)
from budget_api.security import AuthContext, PasswordHasher, TokenPair, TokenSigner
from budget_api.services.categories import add_default_categories
from budget_api.services.email import EmailSender
from budget_api.services.tokens import (
    EMAIL_VERIFICATION_TTL,
    PASSWORD_RESET_TTL,
    blacklist_token,
    consume_single_use_token,
    create_single_use_token,
)

logger = logging.getLogger(__name__)

FORGOT_PASSWORD_MESSAGE = "If that email exists, a reset link has been sent"
RESEND_VERIFICATION_MESSAGE = (
    "If that email exists and is unverified, a verification link has been sent"
)


def normalize_email(email: str) -> str:
    return email.strip().lower()


class AuthService:
    def __init__(
        self,
        session: Session,
        settings: Settings,
        hasher: PasswordHasher,
        signer: TokenSigner,
        email: EmailSender,
    ) -> None:
        self.session = session
        self.settings = settings
        self.hasher = hasher
        self.signer = signer
        self.email = email

    # ---------- helpers ----------

    def _user_by_email(self, email: str) -> Optional[User]:
        return self.session.exec(
            select(User).where(User.email == normalize_email(email))
        ).first()

    def _require_user(self, user_id: str) -> User:
        user = self.session.get(User, user_id)
        if user is None:
            raise NotFound("User not found")
        return user

    def _send_verification(self, user: User) -> None:
        token = create_single_use_token(
            self.session, EmailVerificationToken, user.id, EMAIL_VERIFICATION_TTL
        )
        self.session.commit()
        try:
            self.email.send_verification_email(user.email, token)
        except EmailDeliveryError:
            logger.exception("verification email to user=%s failed", user.id)

    # ---------- register / login / refresh ----------

    def register(
        self, email: str, password: str, name: Optional[str] = None
    ) -> tuple[User, TokenPair]:
        email = normalize_email(email)
        if self._user_by_email(email):
            raise EmailInUse()

        user = User(
            email=email,
            password_hash=self.hasher.hash(password),
            name=(name.strip() if name else None) or None,
        )
        self.session.add(user)
        try:
            self.session.flush()
            add_default_categories(self.session, user.id)
            self.session.commit()
        except IntegrityError as ex:
            # lost the race against a concurrent register for the same email
            self.session.rollback()
            raise EmailInUse() from ex
        self.session.refresh(user)
        logger.info("registered user=%s", user.id)

        if self.settings.require_email_verification:
            self._send_verification(user)

        return user, self.signer.issue_pair(user.id)

    def login(self, email: str, password: str) -> tuple[User, TokenPair]:
        user = self._user_by_email(email)
        if user is None:
            self.hasher.dummy_verify()
            raise InvalidCredentials()
        if not self.hasher.verify(password, user.password_hash):
            raise InvalidCredentials()
        if self.settings.require_email_verification and not user.email_verified:
            raise EmailNotVerified()
        return user, self.signer.issue_pair(user.id)

    def refresh(self, refresh_token: str) -> TokenPair:
        claims = self.signer.verify_refresh(refresh_token)
        if self.session.get(User, claims["sub"]) is None:
            raise InvalidRefreshToken()
        return self.signer.issue_pair(claims["sub"])

    # ---------- profile ----------

    def me(self, user_id: str) -> User:
        return self._require_user(user_id)

    def update_profile(self, user_id: str, name: Optional[str]) -> User:
        user = self._require_user(user_id)
        user.name = (name.strip() if name else None) or None
        self.session.add(user)
        self.session.commit()
        self.session.refresh(user)
        return user

    def logout(self, ctx: AuthContext) -> None:
        blacklist_token(self.session, ctx.token, ctx.user_id, "logout")

    # ---------- passwords ----------

    def forgot_password(self, email: str) -> str:
        user = self._user_by_email(email)
        if user is None:
            return FORGOT_PASSWORD_MESSAGE

        token = create_single_use_token(
            self.session, PasswordResetToken, user.id, PASSWORD_RESET_TTL
        )
        self.session.commit()
        try:
            self.email.send_password_reset_email(user.email, token)
        except EmailDeliveryError:
            logger.exception("password reset email to user=%s failed", user.id)
        return FORGOT_PASSWORD_MESSAGE

    def reset_password(self, token: str, new_password: str) -> None:
        user_id = consume_single_use_token(self.session, PasswordResetToken, token)
        self.session.exec(
            update(User)
            .where(User.id == user_id)
            .values(password_hash=self.hasher.hash(new_password))
        )
        self.session.commit()
        logger.info("password reset for user=%s", user_id)

    def change_password(
        self, ctx: AuthContext, current_password: str, new_password: str
    ) -> None:
        user = self._require_user(ctx.user_id)
        if not self.hasher.verify(current_password, user.password_hash):
            raise InvalidCredentials("Current password is incorrect")

        user.password_hash = self.hasher.hash(new_password)
        self.session.add(user)
        blacklist_token(
            self.session, ctx.token, ctx.user_id, "password_change", commit=False
        )
        self.session.commit()
        logger.info("password changed for user=%s", user.id)

    # ---------- email verification ----------

    def verify_email(self, token: str) -> None:
        user_id = consume_single_use_token(self.session, EmailVerificationToken, token)
        self.session.exec(
            update(User).where(User.id == user_id).values(email_verified=True)
        )
        self.session.commit()

        user = self.session.get(User, user_id)
        if user is not None:
            try:
                self.email.send_welcome_email(user.email)
            except EmailDeliveryError:
                logger.exception("welcome email to user=%s failed", user_id)

    def resend_verification(self, email: str) -> str:
        user = self._user_by_email(email)
        if user is not None and not user.email_verified:
            self._send_verification(user)
        return RESEND_VERIFICATION_MESSAGE

    # ---------- account deletion ----------

    def delete_account(self, ctx: AuthContext, password: str) -> None:
        """
        Remove the user and everything they own in one transaction, then keep
        the presented token revoked until it expires.
        """
        user = self._require_user(ctx.user_id)
        if not self.hasher.verify(password, user.password_hash):
            raise InvalidCredentials("Password is incorrect")

        uid = user.id
        s = self.session
        month_ids = select(BudgetMonth.id).where(BudgetMonth.user_id == uid)
        # children before parents: transactions/budget items restrict their targets
        s.exec(delete(BudgetItem).where(BudgetItem.budget_month_id.in_(month_ids)))
        s.exec(delete(BudgetMonth).where(BudgetMonth.user_id == uid))
        s.exec(delete(Transaction).where(Transaction.user_id == uid))
        s.exec(delete(Category).where(Category.user_id == uid))
        s.exec(delete(Account).where(Account.user_id == uid))
        s.exec(delete(PasswordResetToken).where(PasswordResetToken.user_id == uid))
        s.exec(
            delete(EmailVerificationToken).where(EmailVerificationToken.user_id == uid)
        )
        s.exec(delete(User).where(User.id == uid))
        blacklist_token(s, ctx.token, uid, "account_deletion", commit=False)
        s.commit()
        logger.info("deleted user=%s and all owned rows", uid)


__all__ = [
    "AuthService",
    "FORGOT_PASSWORD_MESSAGE",
    "RESEND_VERIFICATION_MESSAGE",
    "normalize_email",
]

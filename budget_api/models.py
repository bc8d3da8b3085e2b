# budget_api/models.py
from datetime import datetime, timezone  # für Zeitstempel wie "created_at"
from enum import Enum  # small enums for clarity
from typing import Optional  # nullable fields
from uuid import uuid4

from sqlalchemy import DateTime, Index
from sqlalchemy.types import TypeDecorator
from sqlmodel import (
    UniqueConstraint,  # z.B. um E-Mail eindeutig zu machen (kein Doppel-Account)
)
from sqlmodel import (  # SQLModel = ORM-Basisklasse, Field = Spalten-Definition
    Field,
    SQLModel,
)


def utcnow() -> datetime:
    """Timezone-aware UTC 'now'."""
    return datetime.now(timezone.utc)


class UTCDateTime(TypeDecorator):
    """
    Timestamp column that always hands back aware UTC datetimes.

    Naive values coming in are taken as UTC. SQLite has no timezone storage,
    so there the value is written as naive UTC and re-tagged on load.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        value = value.astimezone(timezone.utc)
        if dialect.name == "sqlite":
            return value.replace(tzinfo=None)
        return value

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


def new_id() -> str:
    """Opaque primary key (32 hex chars)."""
    return uuid4().hex


class AccountType(str, Enum):
    cash = "cash"  # stored as TEXT
    checking = "checking"
    credit = "credit"
    savings = "savings"


class CategoryKind(str, Enum):
    income = "income"
    expense = "expense"


class User(SQLModel, table=True):  # "table=True" = echte DB-Tabelle erzeugen
    __tablename__ = "users"

    id: str = Field(default_factory=new_id, primary_key=True)
    email: str = Field(index=True, max_length=320)  # stored lower-cased
    password_hash: str  # gespeichertes Passwort-Hash (nie Klartext)
    name: Optional[str] = Field(default=None, max_length=100)
    email_verified: bool = Field(default=False)
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)

    __table_args__ = (  # zusätzliche DB-Regeln:
        UniqueConstraint("email", name="uq_users_email"),  # E-Mail muss eindeutig sein
    )


class Account(SQLModel, table=True):
    """A place money lives in. The balance is derived from transactions, never stored."""

    __tablename__ = "accounts"

    id: str = Field(default_factory=new_id, primary_key=True)
    user_id: str = Field(index=True, foreign_key="users.id", ondelete="CASCADE")
    name: str = Field(max_length=100)
    type: AccountType
    currency: str = Field(max_length=3)  # ISO code, e.g. USD
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)


class Category(SQLModel, table=True):
    __tablename__ = "categories"

    id: str = Field(default_factory=new_id, primary_key=True)
    user_id: str = Field(index=True, foreign_key="users.id", ondelete="CASCADE")
    name: str = Field(max_length=100)
    kind: CategoryKind
    icon: Optional[str] = Field(default=None, max_length=10)  # emoji
    color: Optional[str] = Field(default=None, max_length=7)  # '#EF4444'
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)

    __table_args__ = (
        UniqueConstraint("user_id", "name", "kind", name="uq_categories_user_name_kind"),
        Index("ix_categories_user_kind", "user_id", "kind"),
    )


class Transaction(SQLModel, table=True):
    """
    A single real-life entry of money moving in/out of an account.
    amount_cents is signed: positive = inflow, negative = outflow.
    """

    __tablename__ = "transactions"

    id: str = Field(default_factory=new_id, primary_key=True)
    user_id: str = Field(foreign_key="users.id", ondelete="CASCADE")
    account_id: str = Field(
        index=True, foreign_key="accounts.id", ondelete="RESTRICT"
    )
    category_id: str = Field(foreign_key="categories.id", ondelete="RESTRICT")

    amount_cents: int

    # Optional notes
    note: Optional[str] = None

    # Business date of the transaction (UTC)
    occurred_at: datetime = Field(sa_type=UTCDateTime)
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)

    __table_args__ = (
        Index("ix_transactions_user_date", "user_id", "occurred_at"),
        Index("ix_transactions_user_category", "user_id", "category_id"),
    )


class BudgetMonth(SQLModel, table=True):
    """Created lazily on the first budget item written for (user, year, month)."""

    __tablename__ = "budget_months"

    id: str = Field(default_factory=new_id, primary_key=True)
    user_id: str = Field(index=True, foreign_key="users.id", ondelete="CASCADE")
    year: int
    month: int  # 1..12
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)

    __table_args__ = (
        UniqueConstraint("user_id", "year", "month", name="uq_budget_months_user_ym"),
    )


class BudgetItem(SQLModel, table=True):
    __tablename__ = "budget_items"

    id: str = Field(default_factory=new_id, primary_key=True)
    budget_month_id: str = Field(
        index=True, foreign_key="budget_months.id", ondelete="CASCADE"
    )
    category_id: str = Field(foreign_key="categories.id", ondelete="RESTRICT")
    planned_cents: int

    __table_args__ = (
        UniqueConstraint(
            "budget_month_id", "category_id", name="uq_budget_items_month_category"
        ),
    )


class PasswordResetToken(SQLModel, table=True):
    __tablename__ = "password_resets"

    id: str = Field(default_factory=new_id, primary_key=True)
    user_id: str = Field(index=True, foreign_key="users.id", ondelete="CASCADE")
    token: str = Field(unique=True, max_length=128)
    expires_at: datetime = Field(sa_type=UTCDateTime)
    used: bool = Field(default=False)
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)


class EmailVerificationToken(SQLModel, table=True):
    __tablename__ = "email_verification_tokens"

    id: str = Field(default_factory=new_id, primary_key=True)
    user_id: str = Field(index=True, foreign_key="users.id", ondelete="CASCADE")
    token: str = Field(unique=True, max_length=128)
    expires_at: datetime = Field(sa_type=UTCDateTime)
    used: bool = Field(default=False)
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)


class BlacklistedToken(SQLModel, table=True):
    """
    A revoked access token, kept until the token would have expired anyway.

    user_id is not a foreign key: an account_deletion revocation must outlive
    the user it belonged to.
    """

    __tablename__ = "blacklisted_tokens"

    id: str = Field(default_factory=new_id, primary_key=True)
    token: str = Field(unique=True, index=True)
    user_id: str = Field(index=True)
    reason: Optional[str] = Field(default=None, max_length=50)
    expires_at: datetime = Field(index=True, sa_type=UTCDateTime)
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)

# budget_api/schemas.py
"""
Request/response bodies. Python names are snake_case; the wire is camelCase
(accessToken, amountCents, occurredAt, ...). Money is always integer cents.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    StrictInt,
    field_validator,
)
from pydantic.alias_generators import to_camel

from budget_api.models import AccountType, CategoryKind
from budget_api.periods import parse_timestamp


class ApiModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )


Timestamp = Union[StrictInt, float, str]


def _timestamp(value):
    # epoch s / epoch ms / ISO-8601 -> aware UTC datetime; ValueError -> 400
    if value is None:
        return None
    return parse_timestamp(value)


# ---------- auth ----------


class RegisterIn(ApiModel):
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=72)
    name: Optional[str] = Field(default=None, max_length=100)


class LoginIn(ApiModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class RefreshIn(ApiModel):
    refresh_token: str = Field(..., min_length=1)


class ProfileIn(ApiModel):
    name: Optional[str] = Field(default=None, max_length=100)


class EmailIn(ApiModel):
    email: EmailStr


class ResetPasswordIn(ApiModel):
    token: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=8, max_length=72)


class ChangePasswordIn(ApiModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=8, max_length=72)


class TokenIn(ApiModel):
    token: str = Field(..., min_length=1)


class DeleteAccountIn(ApiModel):
    password: str = Field(..., min_length=1)


class UserOut(ApiModel):
    id: str
    email: str
    name: Optional[str] = None
    email_verified: bool
    created_at: datetime


class TokensOut(ApiModel):
    access_token: str
    refresh_token: str


class AuthOut(TokensOut):
    user: UserOut


class MessageOut(ApiModel):
    message: str


# ---------- accounts ----------


class AccountIn(ApiModel):
    name: str = Field(..., min_length=1, max_length=100)
    type: AccountType
    currency: str = Field(..., min_length=3, max_length=3)


class AccountUpdate(ApiModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    type: Optional[AccountType] = None
    currency: Optional[str] = Field(default=None, min_length=3, max_length=3)


class AccountOut(ApiModel):
    id: str
    name: str
    type: AccountType
    currency: str
    created_at: datetime
    balance_cents: int = 0


class BalanceOut(ApiModel):
    account_id: str
    balance_cents: int


# ---------- categories ----------


class CategoryIn(ApiModel):
    name: str = Field(..., min_length=1, max_length=100)
    kind: CategoryKind
    icon: Optional[str] = Field(default=None, max_length=10)
    color: Optional[str] = Field(default=None, pattern=r"^#[0-9A-Fa-f]{6}$")


class CategoryUpdate(ApiModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    kind: Optional[CategoryKind] = None
    icon: Optional[str] = Field(default=None, max_length=10)
    color: Optional[str] = Field(default=None, pattern=r"^#[0-9A-Fa-f]{6}$")


class CategoryOut(ApiModel):
    id: str
    name: str
    kind: CategoryKind
    icon: Optional[str] = None
    color: Optional[str] = None
    created_at: datetime
    updated_at: datetime


# ---------- transactions ----------


class TransactionIn(ApiModel):
    account_id: str
    category_id: str
    amount_cents: StrictInt
    note: Optional[str] = Field(default=None, max_length=500)
    occurred_at: Timestamp

    @field_validator("occurred_at")
    @classmethod
    def parse_occurred_at(cls, value):
        return _timestamp(value)


class TransactionUpdate(ApiModel):
    account_id: Optional[str] = None
    category_id: Optional[str] = None
    amount_cents: Optional[StrictInt] = None
    note: Optional[str] = Field(default=None, max_length=500)
    occurred_at: Optional[Timestamp] = None

    @field_validator("occurred_at")
    @classmethod
    def parse_occurred_at(cls, value):
        return _timestamp(value)


class TransactionOut(ApiModel):
    id: str
    account_id: str
    category_id: str
    amount_cents: int
    note: Optional[str] = None
    occurred_at: datetime
    created_at: datetime


# ---------- budgets ----------


class BudgetItemIn(ApiModel):
    category_id: str = Field(..., min_length=1)
    planned_cents: StrictInt


class BudgetItemUpdate(ApiModel):
    planned_cents: StrictInt


class BudgetItemOut(ApiModel):
    id: str
    budget_month_id: str
    category_id: str
    planned_cents: int


class BudgetLineOut(ApiModel):
    category_id: str
    planned_cents: int
    actual_cents: int


class MonthBudgetOut(ApiModel):
    year: int
    month: int
    id: Optional[str] = None  # null until the first item is planned
    items: list[BudgetLineOut]

# budget_api/services/transactions.py
"""
Service helpers for Transactions.

Why:
- Keep router code thin.
- Centralize ownership checks: a transaction may only point at an account
  and a category owned by the same user.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional, Union

from sqlmodel import Session, select

from budget_api.errors import NotFound, ValidationError
from budget_api.models import Transaction
from budget_api.periods import parse_timestamp
from budget_api.services.accounts import get_account
from budget_api.services.categories import get_category

DEFAULT_LIMIT = 50
MAX_LIMIT = 200


@dataclass(frozen=True)
class TransactionFilters:
    # from/to: epoch seconds, epoch milliseconds or ISO-8601; inclusive
    date_from: Union[int, str, None] = None
    date_to: Union[int, str, None] = None
    account_id: Optional[str] = None
    category_id: Optional[str] = None
    limit: Optional[int] = None


def _when(value) -> datetime:
    try:
        return parse_timestamp(value)
    except ValueError as ex:
        raise ValidationError(str(ex)) from ex


def get_transaction(session: Session, user_id: str, txn_id: str) -> Transaction:
    txn = session.get(Transaction, txn_id)
    if not txn or txn.user_id != user_id:
        raise NotFound("Transaction not found")
    return txn


def list_transactions(
    session: Session, user_id: str, filters: TransactionFilters = TransactionFilters()
) -> list[Transaction]:
    stmt = select(Transaction).where(Transaction.user_id == user_id)
    if filters.date_from is not None:
        stmt = stmt.where(Transaction.occurred_at >= _when(filters.date_from))
    if filters.date_to is not None:
        stmt = stmt.where(Transaction.occurred_at <= _when(filters.date_to))
    if filters.account_id:
        stmt = stmt.where(Transaction.account_id == filters.account_id)
    if filters.category_id:
        stmt = stmt.where(Transaction.category_id == filters.category_id)

    limit = min(filters.limit or DEFAULT_LIMIT, MAX_LIMIT)
    stmt = stmt.order_by(Transaction.occurred_at.desc(), Transaction.id).limit(limit)
    return list(session.exec(stmt).all())


def create_transaction(
    session: Session,
    user_id: str,
    *,
    account_id: str,
    category_id: str,
    amount_cents: int,
    occurred_at: Union[int, float, str, datetime],
    note: Optional[str] = None,
) -> Transaction:
    """
    Create a Transaction row and commit it.

    Plain words:
    - account and category must both belong to user_id (404 otherwise).
    - occurred_at may be epoch seconds, epoch ms or ISO-8601; stored as UTC.
    - We commit & refresh so the caller gets a real, persisted object with an id.
    """
    get_account(session, user_id, account_id)
    get_category(session, user_id, category_id)

    txn = Transaction(
        user_id=user_id,
        account_id=account_id,
        category_id=category_id,
        amount_cents=int(amount_cents),
        occurred_at=_when(occurred_at),
        note=note or None,
    )
    session.add(txn)
    session.commit()
    session.refresh(txn)
    return txn


def update_transaction(
    session: Session, user_id: str, txn_id: str, changes: dict[str, Any]
) -> Transaction:
    txn = get_transaction(session, user_id, txn_id)

    if changes.get("account_id") is not None:
        get_account(session, user_id, changes["account_id"])
        txn.account_id = changes["account_id"]
    if changes.get("category_id") is not None:
        get_category(session, user_id, changes["category_id"])
        txn.category_id = changes["category_id"]
    if changes.get("amount_cents") is not None:
        txn.amount_cents = int(changes["amount_cents"])
    if changes.get("occurred_at") is not None:
        txn.occurred_at = _when(changes["occurred_at"])
    if "note" in changes:
        txn.note = changes["note"] or None

    session.add(txn)
    session.commit()
    session.refresh(txn)
    return txn


def delete_transaction(session: Session, user_id: str, txn_id: str) -> None:
    txn = get_transaction(session, user_id, txn_id)
    session.delete(txn)
    session.commit()


__all__ = [
    "TransactionFilters",
    "get_transaction",
    "list_transactions",
    "create_transaction",
    "update_transaction",
    "delete_transaction",
]

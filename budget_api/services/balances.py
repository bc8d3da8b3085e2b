# budget_api/services/balances.py
"""
Account balances, derived from the transactions ledger.

A balance is never stored: it is the sum of amount_cents over the account's
transactions, computed at query time inside the caller's session.
"""

from __future__ import annotations

from sqlalchemy import func
from sqlmodel import Session, select

from budget_api.models import Account, Transaction


def account_balance(session: Session, account_id: str) -> int:
    """Sum of amount_cents for one account; 0 when it has no transactions."""
    stmt = select(func.coalesce(func.sum(Transaction.amount_cents), 0)).where(
        Transaction.account_id == account_id
    )
    return int(session.exec(stmt).one())


def all_balances(session: Session, user_id: str) -> dict[str, int]:
    """
    Balances for every account the user owns, in one grouped query.
    Accounts without transactions map to 0.
    """
    account_ids = session.exec(
        select(Account.id).where(Account.user_id == user_id)
    ).all()
    balances = {account_id: 0 for account_id in account_ids}

    stmt = (
        select(Transaction.account_id, func.sum(Transaction.amount_cents))
        .join(Account, Account.id == Transaction.account_id)
        .where(Account.user_id == user_id)
        .group_by(Transaction.account_id)
    )
    for account_id, total in session.exec(stmt).all():
        balances[account_id] = int(total or 0)
    return balances

# budget_api/services/accounts.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union

from sqlmodel import Session, select

from budget_api.errors import Conflict, NotFound
from budget_api.models import Account, AccountType, Transaction
from budget_api.services.balances import account_balance, all_balances


@dataclass(frozen=True)
class AccountWithBalance:
    account: Account
    balance_cents: int


def get_account(session: Session, user_id: str, account_id: str) -> Account:
    """Return the account only if it belongs to the user; 404 otherwise."""
    acct = session.get(Account, account_id)
    if not acct or acct.user_id != user_id:
        raise NotFound("Account not found")
    return acct


def list_accounts(session: Session, user_id: str) -> list[AccountWithBalance]:
    accounts = session.exec(
        select(Account)
        .where(Account.user_id == user_id)
        .order_by(Account.created_at, Account.name)
    ).all()
    balances = all_balances(session, user_id)
    return [AccountWithBalance(a, balances.get(a.id, 0)) for a in accounts]


def get_account_with_balance(
    session: Session, user_id: str, account_id: str
) -> AccountWithBalance:
    acct = get_account(session, user_id, account_id)
    return AccountWithBalance(acct, account_balance(session, acct.id))


def create_account(
    session: Session,
    user_id: str,
    *,
    name: str,
    type: Union[AccountType, str],
    currency: str,
) -> Account:
    if isinstance(type, str):
        type = AccountType(type)
    acct = Account(
        user_id=user_id, name=name.strip(), type=type, currency=currency.upper()
    )
    session.add(acct)
    session.commit()
    session.refresh(acct)
    return acct


def update_account(
    session: Session, user_id: str, account_id: str, changes: dict[str, Any]
) -> Account:
    acct = get_account(session, user_id, account_id)
    for key, value in changes.items():
        if value is None:
            continue  # every account column is NOT NULL
        if key == "currency":
            value = value.upper()
        elif key == "name":
            value = value.strip()
        setattr(acct, key, value)
    session.add(acct)
    session.commit()
    session.refresh(acct)
    return acct


def delete_account(session: Session, user_id: str, account_id: str) -> None:
    """Accounts with transactions cannot be deleted (restrict)."""
    acct = get_account(session, user_id, account_id)
    has_tx = session.exec(
        select(Transaction.id).where(Transaction.account_id == acct.id).limit(1)
    ).first()
    if has_tx is not None:
        raise Conflict("Account has transactions; delete or move them first")
    session.delete(acct)
    session.commit()


__all__ = [
    "AccountWithBalance",
    "get_account",
    "list_accounts",
    "get_account_with_balance",
    "create_account",
    "update_account",
    "delete_account",
]

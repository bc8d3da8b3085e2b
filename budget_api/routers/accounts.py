# budget_api/routers/accounts.py
# Purpose: Accounts CRUD for the signed-in user, each with its derived balance.

from fastapi import APIRouter, Depends, Response, status
from sqlmodel import Session

from budget_api.db import get_session
from budget_api.deps import require_auth
from budget_api.schemas import AccountIn, AccountOut, AccountUpdate, BalanceOut
from budget_api.security import AuthContext
from budget_api.services import accounts as svc
from budget_api.services.balances import all_balances

router = APIRouter(prefix="/api/accounts", tags=["accounts"])


def _out(acct, balance_cents: int) -> AccountOut:
    out = AccountOut.model_validate(acct)
    out.balance_cents = balance_cents
    return out


@router.get("", response_model=list[AccountOut])
def list_accounts(
    ctx: AuthContext = Depends(require_auth),
    session: Session = Depends(get_session),
):
    return [_out(a.account, a.balance_cents) for a in svc.list_accounts(session, ctx.user_id)]


@router.get("/balances", response_model=dict[str, int])
def balances(
    ctx: AuthContext = Depends(require_auth),
    session: Session = Depends(get_session),
):
    """{accountId: balanceCents} for every account, 0 for accounts with no transactions."""
    return all_balances(session, ctx.user_id)


@router.post("", response_model=AccountOut, status_code=status.HTTP_201_CREATED)
def create_account(
    body: AccountIn,
    ctx: AuthContext = Depends(require_auth),
    session: Session = Depends(get_session),
):
    acct = svc.create_account(
        session, ctx.user_id, name=body.name, type=body.type, currency=body.currency
    )
    return _out(acct, 0)


@router.get("/{account_id}", response_model=AccountOut)
def get_account(
    account_id: str,
    ctx: AuthContext = Depends(require_auth),
    session: Session = Depends(get_session),
):
    found = svc.get_account_with_balance(session, ctx.user_id, account_id)
    return _out(found.account, found.balance_cents)


@router.get("/{account_id}/balance", response_model=BalanceOut)
def get_balance(
    account_id: str,
    ctx: AuthContext = Depends(require_auth),
    session: Session = Depends(get_session),
):
    found = svc.get_account_with_balance(session, ctx.user_id, account_id)
    return BalanceOut(account_id=found.account.id, balance_cents=found.balance_cents)


@router.put("/{account_id}", response_model=AccountOut)
def update_account(
    account_id: str,
    body: AccountUpdate,
    ctx: AuthContext = Depends(require_auth),
    session: Session = Depends(get_session),
):
    svc.update_account(session, ctx.user_id, account_id, body.model_dump(exclude_unset=True))
    found = svc.get_account_with_balance(session, ctx.user_id, account_id)
    return _out(found.account, found.balance_cents)


@router.delete("/{account_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_account(
    account_id: str,
    ctx: AuthContext = Depends(require_auth),
    session: Session = Depends(get_session),
):
    svc.delete_account(session, ctx.user_id, account_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

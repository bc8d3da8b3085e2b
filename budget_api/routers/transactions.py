# budget_api/routers/transactions.py
# Purpose: Transactions CRUD + filtered listing (date range, account, category).

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlmodel import Session

from budget_api.db import get_session
from budget_api.deps import require_auth
from budget_api.schemas import TransactionIn, TransactionOut, TransactionUpdate
from budget_api.security import AuthContext
from budget_api.services import transactions as svc

router = APIRouter(prefix="/api/transactions", tags=["transactions"])


@router.get("", response_model=list[TransactionOut])
def list_transactions(
    date_from: Optional[str] = Query(None, alias="from"),
    date_to: Optional[str] = Query(None, alias="to"),
    account_id: Optional[str] = Query(None, alias="accountId"),
    category_id: Optional[str] = Query(None, alias="categoryId"),
    limit: Optional[int] = Query(None, ge=1),
    ctx: AuthContext = Depends(require_auth),
    session: Session = Depends(get_session),
):
    """
    Newest first. from/to are inclusive and accept epoch seconds, epoch
    milliseconds or ISO-8601. limit defaults to 50 and is capped at 200.
    """
    filters = svc.TransactionFilters(
        date_from=date_from,
        date_to=date_to,
        account_id=account_id,
        category_id=category_id,
        limit=limit,
    )
    return svc.list_transactions(session, ctx.user_id, filters)


@router.post("", response_model=TransactionOut, status_code=status.HTTP_201_CREATED)
def create_transaction(
    body: TransactionIn,
    ctx: AuthContext = Depends(require_auth),
    session: Session = Depends(get_session),
):
    return svc.create_transaction(
        session,
        ctx.user_id,
        account_id=body.account_id,
        category_id=body.category_id,
        amount_cents=body.amount_cents,
        occurred_at=body.occurred_at,
        note=body.note,
    )


@router.get("/{txn_id}", response_model=TransactionOut)
def get_transaction(
    txn_id: str,
    ctx: AuthContext = Depends(require_auth),
    session: Session = Depends(get_session),
):
    return svc.get_transaction(session, ctx.user_id, txn_id)


@router.put("/{txn_id}", response_model=TransactionOut)
def update_transaction(
    txn_id: str,
    body: TransactionUpdate,
    ctx: AuthContext = Depends(require_auth),
    session: Session = Depends(get_session),
):
    return svc.update_transaction(
        session, ctx.user_id, txn_id, body.model_dump(exclude_unset=True)
    )


@router.delete("/{txn_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_transaction(
    txn_id: str,
    ctx: AuthContext = Depends(require_auth),
    session: Session = Depends(get_session),
):
    svc.delete_transaction(session, ctx.user_id, txn_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

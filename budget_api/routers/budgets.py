# budget_api/routers/budgets.py
# Purpose: Monthly budgets: planned amounts per category vs. clamped actual spend.
# - A budget month is created on the first item written, never on read.
# - POST creates an item, PUT changes it; creating the same category twice is a 409.

from fastapi import APIRouter, Depends, Response, status
from sqlmodel import Session

from budget_api.db import get_session
from budget_api.deps import require_auth
from budget_api.schemas import (
    BudgetItemIn,
    BudgetItemOut,
    BudgetItemUpdate,
    MonthBudgetOut,
)
from budget_api.security import AuthContext
from budget_api.services import budgets as svc

router = APIRouter(prefix="/api/budgets", tags=["budgets"])


@router.get("", response_model=list[MonthBudgetOut])
def list_months(
    ctx: AuthContext = Depends(require_auth),
    session: Session = Depends(get_session),
):
    return [
        MonthBudgetOut.model_validate(mb)
        for mb in svc.get_all_months(session, ctx.user_id)
    ]


@router.get("/{year}/{month}", response_model=MonthBudgetOut)
def get_month(
    year: int,
    month: int,
    ctx: AuthContext = Depends(require_auth),
    session: Session = Depends(get_session),
):
    return MonthBudgetOut.model_validate(svc.get_month(session, ctx.user_id, year, month))


@router.post(
    "/{year}/{month}/items",
    response_model=BudgetItemOut,
    status_code=status.HTTP_201_CREATED,
)
def create_item(
    year: int,
    month: int,
    body: BudgetItemIn,
    ctx: AuthContext = Depends(require_auth),
    session: Session = Depends(get_session),
):
    return svc.create_item(
        session,
        ctx.user_id,
        year,
        month,
        category_id=body.category_id,
        planned_cents=body.planned_cents,
    )


@router.put("/{year}/{month}/items/{category_id}", response_model=BudgetItemOut)
def update_item(
    year: int,
    month: int,
    category_id: str,
    body: BudgetItemUpdate,
    ctx: AuthContext = Depends(require_auth),
    session: Session = Depends(get_session),
):
    return svc.update_item(
        session,
        ctx.user_id,
        year,
        month,
        category_id=category_id,
        planned_cents=body.planned_cents,
    )


@router.delete(
    "/{year}/{month}/items/{category_id}", status_code=status.HTTP_204_NO_CONTENT
)
def delete_item(
    year: int,
    month: int,
    category_id: str,
    ctx: AuthContext = Depends(require_auth),
    session: Session = Depends(get_session),
):
    svc.delete_item(session, ctx.user_id, year, month, category_id=category_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

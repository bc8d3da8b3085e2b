# budget_api/routers/categories.py
# Purpose: Category CRUD. Deleting a category moves its transactions to "Other".

from typing import Optional

from fastapi import APIRouter, Depends, Response, status
from sqlmodel import Session

from budget_api.db import get_session
from budget_api.deps import require_auth
from budget_api.models import CategoryKind
from budget_api.schemas import CategoryIn, CategoryOut, CategoryUpdate
from budget_api.security import AuthContext
from budget_api.services import categories as svc

router = APIRouter(prefix="/api/categories", tags=["categories"])


@router.get("", response_model=list[CategoryOut])
def list_categories(
    kind: Optional[CategoryKind] = None,
    ctx: AuthContext = Depends(require_auth),
    session: Session = Depends(get_session),
):
    return svc.list_categories(session, ctx.user_id, kind)


@router.post("", response_model=CategoryOut, status_code=status.HTTP_201_CREATED)
def create_category(
    body: CategoryIn,
    ctx: AuthContext = Depends(require_auth),
    session: Session = Depends(get_session),
):
    return svc.create_category(
        session,
        ctx.user_id,
        name=body.name,
        kind=body.kind,
        icon=body.icon,
        color=body.color,
    )


@router.get("/{category_id}", response_model=CategoryOut)
def get_category(
    category_id: str,
    ctx: AuthContext = Depends(require_auth),
    session: Session = Depends(get_session),
):
    return svc.get_category(session, ctx.user_id, category_id)


@router.put("/{category_id}", response_model=CategoryOut)
def update_category(
    category_id: str,
    body: CategoryUpdate,
    ctx: AuthContext = Depends(require_auth),
    session: Session = Depends(get_session),
):
    return svc.update_category(
        session, ctx.user_id, category_id, body.model_dump(exclude_unset=True)
    )


@router.delete("/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_category(
    category_id: str,
    ctx: AuthContext = Depends(require_auth),
    session: Session = Depends(get_session),
):
    svc.delete_category(session, ctx.user_id, category_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

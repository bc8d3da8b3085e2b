# budget_api/services/categories.py
"""
Per-user categories.

Every user owns an "Other" category of each kind. It is created at
registration, and it is where transactions land when their category is
deleted.
"""

from __future__ import annotations

from typing import Any, Optional, Union

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from budget_api.errors import Conflict, NotFound
from budget_api.models import BudgetItem, Category, CategoryKind, Transaction, utcnow

DEFAULT_CATEGORY_NAME = "Other"


def _find_by_name(
    session: Session, user_id: str, name: str, kind: CategoryKind
) -> Optional[Category]:
    stmt = select(Category).where(
        Category.user_id == user_id, Category.name == name, Category.kind == kind
    )
    return session.exec(stmt).first()


def add_default_categories(session: Session, user_id: str) -> None:
    """Stage the "Other" income/expense pair for a new user (caller commits)."""
    for kind in CategoryKind:
        session.add(Category(user_id=user_id, name=DEFAULT_CATEGORY_NAME, kind=kind))


def get_default_category(
    session: Session, user_id: str, kind: CategoryKind
) -> Category:
    """Return the user's "Other" category of this kind, re-creating it if missing."""
    cat = _find_by_name(session, user_id, DEFAULT_CATEGORY_NAME, kind)
    if cat:
        return cat
    cat = Category(user_id=user_id, name=DEFAULT_CATEGORY_NAME, kind=kind)
    session.add(cat)
    session.flush()
    return cat


def list_categories(
    session: Session, user_id: str, kind: Optional[CategoryKind] = None
) -> list[Category]:
    stmt = select(Category).where(Category.user_id == user_id)
    if kind is not None:
        stmt = stmt.where(Category.kind == kind)
    stmt = stmt.order_by(Category.kind, Category.name)
    return list(session.exec(stmt).all())


def get_category(session: Session, user_id: str, category_id: str) -> Category:
    """Return the category only if it belongs to the user; 404 otherwise."""
    cat = session.get(Category, category_id)
    if not cat or cat.user_id != user_id:
        raise NotFound("Category not found")
    return cat


def create_category(
    session: Session,
    user_id: str,
    *,
    name: str,
    kind: Union[CategoryKind, str],
    icon: Optional[str] = None,
    color: Optional[str] = None,
) -> Category:
    if isinstance(kind, str):
        kind = CategoryKind(kind)
    name = name.strip()
    if _find_by_name(session, user_id, name, kind):
        raise Conflict(f"A {kind.value} category named '{name}' already exists")

    cat = Category(user_id=user_id, name=name, kind=kind, icon=icon, color=color)
    session.add(cat)
    try:
        session.commit()
    except IntegrityError as ex:
        session.rollback()
        raise Conflict(f"A {kind.value} category named '{name}' already exists") from ex
    session.refresh(cat)
    return cat


def update_category(
    session: Session, user_id: str, category_id: str, changes: dict[str, Any]
) -> Category:
    cat = get_category(session, user_id, category_id)
    if "name" in changes and changes["name"] is not None:
        changes["name"] = changes["name"].strip()
    for key in ("name", "kind"):
        # name/kind are NOT NULL; an explicit null means "leave as is"
        if key in changes and changes[key] is None:
            del changes[key]

    new_name = changes.get("name", cat.name)
    new_kind = CategoryKind(changes.get("kind", cat.kind))
    if (new_name, new_kind) != (cat.name, cat.kind):
        clash = _find_by_name(session, user_id, new_name, new_kind)
        if clash and clash.id != cat.id:
            raise Conflict(f"A {new_kind.value} category named '{new_name}' already exists")

    for key, value in changes.items():
        setattr(cat, key, value)
    cat.updated_at = utcnow()
    session.add(cat)
    try:
        session.commit()
    except IntegrityError as ex:
        session.rollback()
        raise Conflict("Category already exists") from ex
    session.refresh(cat)
    return cat


def delete_category(session: Session, user_id: str, category_id: str) -> None:
    """
    Delete a category. Its transactions move to the user's "Other" category
    of the same kind. Refused while budget items still plan against it.
    """
    cat = get_category(session, user_id, category_id)
    if cat.name == DEFAULT_CATEGORY_NAME:
        raise Conflict("The default category cannot be deleted")

    planned = session.exec(
        select(BudgetItem.id).where(BudgetItem.category_id == cat.id).limit(1)
    ).first()
    if planned is not None:
        raise Conflict("Category is used by a budget; remove the budget items first")

    fallback = get_default_category(session, user_id, cat.kind)
    session.exec(
        update(Transaction)
        .where(Transaction.category_id == cat.id)
        .values(category_id=fallback.id)
    )
    session.delete(cat)
    session.commit()


__all__ = [
    "DEFAULT_CATEGORY_NAME",
    "add_default_categories",
    "get_default_category",
    "list_categories",
    "get_category",
    "create_category",
    "update_category",
    "delete_category",
]

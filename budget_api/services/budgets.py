# budget_api/services/budgets.py
"""
Monthly budgets: planned amounts per category vs. actual spend.

Actual spend is "clamped": each transaction contributes max(0, amount_cents),
so negative amounts (refunds, outflows) never reduce a category's actual.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from sqlalchemy import case, func
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from budget_api.errors import Conflict, NotFound, ValidationError
from budget_api.models import BudgetItem, BudgetMonth, Category, Transaction
from budget_api.periods import month_bounds, validate_year_month

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BudgetLine:
    category_id: str
    planned_cents: int
    actual_cents: int


@dataclass
class MonthBudget:
    year: int
    month: int
    id: str | None = None  # None when no BudgetMonth row exists yet
    items: list[BudgetLine] = field(default_factory=list)


def _check_period(year: int, month: int) -> None:
    try:
        validate_year_month(year, month)
    except ValueError as ex:
        raise ValidationError("Invalid year or month", details=str(ex)) from ex


def _find_month(
    session: Session, user_id: str, year: int, month: int
) -> BudgetMonth | None:
    stmt = select(BudgetMonth).where(
        BudgetMonth.user_id == user_id,
        BudgetMonth.year == year,
        BudgetMonth.month == month,
    )
    return session.exec(stmt).first()


def _get_or_create_month(
    session: Session, user_id: str, year: int, month: int
) -> BudgetMonth:
    """
    Return the user's BudgetMonth, creating it on first write.
    Two requests can race on the insert; the loser re-reads the winner's row.
    """
    bm = _find_month(session, user_id, year, month)
    if bm:
        return bm
    bm = BudgetMonth(user_id=user_id, year=year, month=month)
    session.add(bm)
    try:
        session.commit()
    except IntegrityError:
        session.rollback()
        logger.info(
            "budget month %s-%02d for user=%s created concurrently; re-fetching",
            year,
            month,
            user_id,
        )
        bm = _find_month(session, user_id, year, month)
        if bm is None:
            raise
        return bm
    session.refresh(bm)
    return bm


def _actuals_by_category(
    session: Session, user_id: str, year: int, month: int
) -> dict[str, int]:
    start, end = month_bounds(year, month)
    clamped = case(
        (Transaction.amount_cents < 0, 0), else_=Transaction.amount_cents
    )
    stmt = (
        select(Transaction.category_id, func.sum(clamped))
        .where(
            Transaction.user_id == user_id,
            Transaction.occurred_at >= start,
            Transaction.occurred_at <= end,
        )
        .group_by(Transaction.category_id)
    )
    return {cat_id: int(total or 0) for cat_id, total in session.exec(stmt).all()}


def _expand(session: Session, user_id: str, bm: BudgetMonth) -> MonthBudget:
    actuals = _actuals_by_category(session, user_id, bm.year, bm.month)
    planned = session.exec(
        select(BudgetItem).where(BudgetItem.budget_month_id == bm.id)
    ).all()
    items = [
        BudgetLine(
            category_id=it.category_id,
            planned_cents=it.planned_cents,
            actual_cents=actuals.get(it.category_id, 0),
        )
        for it in planned
    ]
    return MonthBudget(year=bm.year, month=bm.month, id=bm.id, items=items)


def get_month(session: Session, user_id: str, year: int, month: int) -> MonthBudget:
    """Planned vs. actual for one month. Never creates a BudgetMonth."""
    _check_period(year, month)
    bm = _find_month(session, user_id, year, month)
    if bm is None:
        return MonthBudget(year=year, month=month)
    return _expand(session, user_id, bm)


def get_all_months(session: Session, user_id: str) -> list[MonthBudget]:
    """Every BudgetMonth the user has, each expanded like get_month (one query set per month)."""
    months = session.exec(
        select(BudgetMonth)
        .where(BudgetMonth.user_id == user_id)
        .order_by(BudgetMonth.year, BudgetMonth.month)
    ).all()
    return [_expand(session, user_id, bm) for bm in months]


def _find_item(
    session: Session, budget_month_id: str, category_id: str
) -> BudgetItem | None:
    stmt = select(BudgetItem).where(
        BudgetItem.budget_month_id == budget_month_id,
        BudgetItem.category_id == category_id,
    )
    return session.exec(stmt).first()


def create_item(
    session: Session,
    user_id: str,
    year: int,
    month: int,
    *,
    category_id: str,
    planned_cents: int,
) -> BudgetItem:
    """
    Add a planned amount for a category. Creating the same (month, category)
    twice is a Conflict; use update_item to change an existing one.
    """
    _check_period(year, month)
    category = session.get(Category, category_id)
    if not category or category.user_id != user_id:
        raise NotFound("Category not found")

    bm = _get_or_create_month(session, user_id, year, month)
    if _find_item(session, bm.id, category_id):
        raise Conflict("Budget item already exists, use PUT to update")

    item = BudgetItem(
        budget_month_id=bm.id, category_id=category_id, planned_cents=planned_cents
    )
    session.add(item)
    try:
        session.commit()
    except IntegrityError as ex:
        session.rollback()
        raise Conflict("Budget item already exists, use PUT to update") from ex
    session.refresh(item)
    return item


def _existing_item(
    session: Session, user_id: str, year: int, month: int, category_id: str
) -> BudgetItem:
    _check_period(year, month)
    bm = _find_month(session, user_id, year, month)
    if bm is None:
        raise NotFound("Budget month not found")
    item = _find_item(session, bm.id, category_id)
    if item is None:
        raise NotFound("Budget item not found")
    return item


def update_item(
    session: Session,
    user_id: str,
    year: int,
    month: int,
    *,
    category_id: str,
    planned_cents: int,
) -> BudgetItem:
    item = _existing_item(session, user_id, year, month, category_id)
    item.planned_cents = planned_cents
    session.add(item)
    session.commit()
    session.refresh(item)
    return item


def delete_item(
    session: Session, user_id: str, year: int, month: int, *, category_id: str
) -> None:
    item = _existing_item(session, user_id, year, month, category_id)
    session.delete(item)
    session.commit()


__all__ = [
    "BudgetLine",
    "MonthBudget",
    "get_month",
    "get_all_months",
    "create_item",
    "update_item",
    "delete_item",
]

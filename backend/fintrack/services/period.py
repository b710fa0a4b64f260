from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from fintrack.models.income import SalaryHistory
from fintrack.utils.decimal_math import money


@dataclass(frozen=True)
class MonthWindow:
    """Half-open calendar window ``[start, end)`` for one (year, month)."""

    year: int
    month: int
    start: date
    end: date

    @property
    def days(self) -> int:
        return calendar.monthrange(self.year, self.month)[1]

    def contains(self, value: date | None) -> bool:
        return value is not None and self.start <= value < self.end


def month_window(year: int, month: int) -> MonthWindow:
    if month < 1 or month > 12:
        raise ValueError("month must be between 1 and 12.")
    start = date(year, month, 1)
    end = date(year + 1, 1, 1) if month == 12 else date(year, month + 1, 1)
    return MonthWindow(year=year, month=month, start=start, end=end)


def previous_month(year: int, month: int) -> tuple[int, int]:
    if month == 1:
        return year - 1, 12
    return year, month - 1


def months_between(start: date, year: int, month: int) -> int:
    return (year - start.year) * 12 + (month - start.month)


def resolve_salary(db: Session, user_id: int, window: MonthWindow) -> Decimal:
    row = db.scalar(
        select(SalaryHistory)
        .where(
            SalaryHistory.user_id == user_id,
            SalaryHistory.effective_from < window.end,
            or_(
                SalaryHistory.effective_to.is_(None),
                SalaryHistory.effective_to >= window.start,
            ),
        )
        .order_by(SalaryHistory.effective_from.desc(), SalaryHistory.id.desc())
        .limit(1)
    )
    if row is None:
        return money(0)
    return money(row.monthly)

from datetime import date

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from fintrack.db.base import Base
from fintrack.models import SalaryHistory, User
from fintrack.services.period import month_window, months_between, previous_month, resolve_salary
from fintrack.utils.decimal_math import money


def _session() -> Session:
    engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
    Base.metadata.create_all(bind=engine)
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)()


def test_month_window_is_half_open() -> None:
    window = month_window(2026, 2)
    assert window.start == date(2026, 2, 1)
    assert window.end == date(2026, 3, 1)
    assert window.days == 28
    assert window.contains(date(2026, 2, 28)) is True
    assert window.contains(date(2026, 3, 1)) is False
    assert window.contains(None) is False


def test_december_window_rolls_into_next_year() -> None:
    window = month_window(2025, 12)
    assert window.end == date(2026, 1, 1)


@pytest.mark.parametrize("month", [0, 13])
def test_month_outside_calendar_is_rejected(month: int) -> None:
    with pytest.raises(ValueError):
        month_window(2026, month)


def test_previous_month_wraps_january() -> None:
    assert previous_month(2026, 1) == (2025, 12)
    assert previous_month(2026, 7) == (2026, 6)


def test_months_between_counts_calendar_months() -> None:
    assert months_between(date(2025, 11, 20), 2026, 2) == 3
    assert months_between(date(2026, 2, 1), 2026, 2) == 0


def test_resolve_salary_picks_latest_row_overlapping_window() -> None:
    db = _session()
    user = User(email="salary@test.com", full_name="Salary User")
    db.add(user)
    db.flush()
    db.add_all(
        [
            SalaryHistory(
                user_id=user.id,
                monthly=money("80000"),
                effective_from=date(2025, 1, 1),
                effective_to=date(2026, 3, 14),
            ),
            SalaryHistory(user_id=user.id, monthly=money("95000"), effective_from=date(2026, 3, 15)),
            SalaryHistory(user_id=user.id, monthly=money("120000"), effective_from=date(2026, 4, 1)),
        ]
    )
    db.flush()

    assert resolve_salary(db, user.id, month_window(2026, 2)) == money("80000")
    assert resolve_salary(db, user.id, month_window(2026, 3)) == money("95000")
    assert resolve_salary(db, user.id, month_window(2026, 5)) == money("120000")


def test_resolve_salary_defaults_to_zero() -> None:
    db = _session()
    user = User(email="nosalary@test.com", full_name="No Salary")
    db.add(user)
    db.flush()
    db.add(
        SalaryHistory(
            user_id=user.id,
            monthly=money("50000"),
            effective_from=date(2024, 1, 1),
            effective_to=date(2024, 12, 31),
        )
    )
    db.flush()

    assert resolve_salary(db, user.id, month_window(2026, 1)) == money(0)

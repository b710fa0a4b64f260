from datetime import date
from decimal import Decimal

import pytest
from fastapi import HTTPException
from sqlalchemy import create_engine, func, select
from sqlalchemy.orm import Session, sessionmaker

from fintrack.db.base import Base
from fintrack.models import (
    AuditLog,
    Expense,
    ExpenseType,
    MonthlySnapshot,
    SalaryHistory,
    SpendCategory,
    TaxMode,
    TaxSetting,
    User,
)
from fintrack.services import lifecycle
from fintrack.services.lifecycle import (
    assert_month_open,
    close_month,
    close_previous_month_for_all_users,
    get_month_view,
    get_snapshot,
    is_month_closed,
    upsert_snapshot,
)
from fintrack.services.snapshot_engine import MonthlySnapshotPreview, compute_monthly_snapshot, snapshot_values
from fintrack.utils.decimal_math import money


def _session() -> Session:
    engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
    Base.metadata.create_all(bind=engine)
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)()


def _user(db: Session, email: str = "owner@test.com", salary: str = "100000") -> User:
    user = User(email=email, full_name="Owner")
    db.add(user)
    db.flush()
    db.add_all(
        [
            SalaryHistory(user_id=user.id, monthly=money(salary), effective_from=date(2024, 1, 1)),
            TaxSetting(user_id=user.id, mode=TaxMode.percentage, percentage=Decimal("10")),
        ]
    )
    db.flush()
    return user


def _expense(db: Session, user: User, amount: str, on: date) -> None:
    db.add(
        Expense(
            user_id=user.id,
            title="Groceries",
            amount=money(amount),
            tx_date=on,
            expense_type=ExpenseType.expected,
            category=SpendCategory.needs,
        )
    )
    db.flush()


def _snapshot_count(db: Session, user: User) -> int:
    return db.scalar(select(func.count(MonthlySnapshot.id)).where(MonthlySnapshot.user_id == user.id))


def test_close_creates_closed_snapshot_and_audit_entry() -> None:
    db = _session()
    user = _user(db)
    _expense(db, user, "20000", date(2026, 3, 4))

    snapshot, created = close_month(db, user, 2026, 3)
    db.commit()

    assert created is True
    assert snapshot.is_closed is True
    assert snapshot.closed_at is not None
    assert snapshot.surplus_amount == money("70000")
    log = db.scalar(select(AuditLog).where(AuditLog.entity_id == str(snapshot.id)))
    assert log is not None
    assert log.action == "snapshot.close"
    assert log.before_state is None
    assert log.after_state["surplus_amount"] == "70000.00"


def test_closed_month_rejects_close_without_force() -> None:
    db = _session()
    user = _user(db)
    snapshot, _ = close_month(db, user, 2026, 3)
    db.commit()
    stored_surplus = snapshot.surplus_amount

    _expense(db, user, "5000", date(2026, 3, 18))
    with pytest.raises(HTTPException) as exc_info:
        close_month(db, user, 2026, 3)

    assert exc_info.value.status_code == 409
    assert "force_recalculate" in exc_info.value.detail
    db.refresh(snapshot)
    assert snapshot.surplus_amount == stored_surplus


def test_force_recalculate_is_idempotent_and_keeps_one_row() -> None:
    db = _session()
    user = _user(db)
    _expense(db, user, "12000", date(2026, 3, 9))

    first, _ = close_month(db, user, 2026, 3)
    db.commit()
    first_values = {key: getattr(first, key) for key in ("total_income", "planned_surplus", "cash_remaining", "surplus_amount")}

    second, created = close_month(db, user, 2026, 3, force_recalculate=True)
    db.commit()
    third, _ = close_month(db, user, 2026, 3, force_recalculate=True)
    db.commit()

    assert created is False
    assert second.id == first.id == third.id
    assert {key: getattr(third, key) for key in first_values} == first_values
    assert _snapshot_count(db, user) == 1
    actions = db.scalars(select(AuditLog.action).order_by(AuditLog.id)).all()
    assert actions == ["snapshot.close", "snapshot.recalculate", "snapshot.recalculate"]


def test_force_recalculate_picks_up_new_data() -> None:
    db = _session()
    user = _user(db)
    close_month(db, user, 2026, 3)
    db.commit()
    _expense(db, user, "5000", date(2026, 3, 18))

    snapshot, _ = close_month(db, user, 2026, 3, force_recalculate=True)
    db.commit()

    assert snapshot.total_expenses == money("5000")
    assert snapshot.surplus_amount == money("85000")


def test_previous_surplus_carries_across_year_boundary() -> None:
    db = _session()
    user = _user(db)
    _expense(db, user, "30000", date(2025, 12, 20))

    december, _ = close_month(db, user, 2025, 12)
    db.commit()
    january = get_month_view(db, user, 2026, 1)

    assert december.surplus_amount == money("60000")
    assert january.previous_surplus == money("60000")


def test_previous_surplus_defaults_to_zero() -> None:
    db = _session()
    user = _user(db)
    view = get_month_view(db, user, 2026, 1)
    assert view.previous_surplus == money(0)


def test_open_month_view_is_live_and_unsaved() -> None:
    db = _session()
    user = _user(db)

    view = get_month_view(db, user, 2026, 3)

    assert isinstance(view, MonthlySnapshotPreview)
    assert _snapshot_count(db, user) == 0


def test_closed_month_view_returns_stored_row() -> None:
    db = _session()
    user = _user(db)
    snapshot, _ = close_month(db, user, 2026, 3)
    db.commit()
    _expense(db, user, "5000", date(2026, 3, 18))

    view = get_month_view(db, user, 2026, 3)

    assert view is snapshot
    assert view.total_expenses == money(0)


def test_draft_view_upserts_open_row() -> None:
    db = _session()
    user = _user(db)

    first = get_month_view(db, user, 2026, 3, persist_draft=True)
    db.commit()
    _expense(db, user, "1000", date(2026, 3, 2))
    second = get_month_view(db, user, 2026, 3, persist_draft=True)
    db.commit()

    assert isinstance(first, MonthlySnapshot)
    assert first.id == second.id
    assert second.is_closed is False
    assert second.total_expenses == money("1000")
    assert _snapshot_count(db, user) == 1


def test_closed_month_guard() -> None:
    db = _session()
    user = _user(db)
    close_month(db, user, 2026, 3)
    db.commit()

    assert is_month_closed(db, user.id, date(2026, 3, 15)) is True
    assert is_month_closed(db, user.id, date(2026, 4, 1)) is False
    assert_month_open(db, user.id, date(2026, 4, 1))
    with pytest.raises(HTTPException) as exc_info:
        assert_month_open(db, user.id, date(2026, 3, 31), action="add an expense")
    assert exc_info.value.status_code == 409
    assert "2026-03" in exc_info.value.detail


def test_cron_closes_previous_month_for_active_users() -> None:
    db = _session()
    first = _user(db, email="first@test.com")
    second = _user(db, email="second@test.com", salary="50000")
    inactive = User(email="gone@test.com", full_name="Gone", is_active=False)
    db.add(inactive)
    db.flush()
    close_month(db, first, 2026, 2)
    db.commit()

    result = close_previous_month_for_all_users(db, date(2026, 3, 1))

    assert (result.year, result.month) == (2026, 2)
    assert result.created == 1
    assert result.skipped == 1
    assert result.failed == 0
    closed = get_snapshot(db, second.id, 2026, 2)
    assert closed is not None and closed.is_closed is True
    assert get_snapshot(db, inactive.id, 2026, 2) is None


def test_cron_promotes_open_draft_to_closed() -> None:
    db = _session()
    user = _user(db)
    get_month_view(db, user, 2025, 12, persist_draft=True)
    db.commit()

    result = close_previous_month_for_all_users(db, date(2026, 1, 2))

    assert result.updated == 1
    assert get_snapshot(db, user.id, 2025, 12).is_closed is True


def test_snapshot_values_match_persisted_row() -> None:
    db = _session()
    user = _user(db)
    preview = get_month_view(db, user, 2026, 3)
    snapshot, _ = close_month(db, user, 2026, 3)
    db.commit()

    for key, value in snapshot_values(preview).items():
        if isinstance(value, Decimal):
            assert money(getattr(snapshot, key)) == value, key


def test_concurrent_insert_falls_back_to_update(tmp_path, monkeypatch) -> None:
    engine = create_engine(f"sqlite+pysqlite:///{tmp_path / 'snapshots.db'}", future=True)
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)

    with factory() as setup:
        user_id = _user(setup).id
        setup.commit()

    # another worker saves a draft for the same month first
    with factory() as other:
        draft = compute_monthly_snapshot(user_id, 2026, 3, db=other)
        upsert_snapshot(other, draft, closed=False)
        other.commit()

    lookups = []

    def stale_then_real(db, user_id, year, month):
        lookups.append((year, month))
        if len(lookups) == 1:
            return None
        return get_snapshot(db, user_id, year, month)

    monkeypatch.setattr(lifecycle, "get_snapshot", stale_then_real)

    db = factory()
    preview = compute_monthly_snapshot(user_id, 2026, 3, db=db)
    snapshot, created = upsert_snapshot(db, preview, closed=True)
    db.commit()

    assert created is False
    assert len(lookups) == 2
    assert snapshot.is_closed is True
    count = db.scalar(select(func.count(MonthlySnapshot.id)).where(MonthlySnapshot.user_id == user_id))
    assert count == 1
    db.close()
    engine.dispose()

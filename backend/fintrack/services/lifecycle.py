from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timezone

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from fintrack.models.snapshot import MonthlySnapshot
from fintrack.models.user import User
from fintrack.services.audit import log_audit
from fintrack.services.borrowed_funds import refresh_borrowed_fund_valuations
from fintrack.services.period import previous_month
from fintrack.services.snapshot_engine import (
    MonthlySnapshotPreview,
    compute_monthly_snapshot,
    snapshot_values,
)


logger = logging.getLogger("fintrack.snapshots")

AUDIT_FIELDS = (
    "total_income",
    "tax_amount",
    "total_loans",
    "total_sips",
    "total_expenses",
    "planned_surplus",
    "cash_remaining",
    "surplus_amount",
    "previous_surplus",
    "is_closed",
)


@dataclass
class CronCloseResult:
    year: int
    month: int
    total_users: int = 0
    created: int = 0
    updated: int = 0
    skipped: int = 0
    failed: int = 0
    failures: list[dict] = field(default_factory=list)


def get_snapshot(db: Session, user_id: int, year: int, month: int) -> MonthlySnapshot | None:
    return db.scalar(
        select(MonthlySnapshot).where(
            MonthlySnapshot.user_id == user_id,
            MonthlySnapshot.year == year,
            MonthlySnapshot.month == month,
        )
    )


def is_month_closed(db: Session, user_id: int, on_date: date) -> bool:
    """True when the month containing ``on_date`` has a closed snapshot.

    Ledger write routes live outside this service and call this before
    accepting a dated record, so a closed month stays frozen.
    """
    snapshot = get_snapshot(db, user_id, on_date.year, on_date.month)
    return snapshot is not None and snapshot.is_closed


def assert_month_open(db: Session, user_id: int, on_date: date, action: str = "modify records") -> None:
    """Raise 409 when a dated write would land in a closed month."""
    if is_month_closed(db, user_id, on_date):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Cannot {action} in {on_date.year:04d}-{on_date.month:02d}: the month is closed.",
        )


def audit_state(snapshot: MonthlySnapshot | None) -> dict | None:
    if snapshot is None:
        return None
    state = {}
    for name in AUDIT_FIELDS:
        value = getattr(snapshot, name)
        state[name] = value if isinstance(value, bool) else str(value)
    return state


def _apply(snapshot: MonthlySnapshot, preview: MonthlySnapshotPreview, *, closed: bool) -> None:
    for key, value in snapshot_values(preview).items():
        setattr(snapshot, key, value)
    snapshot.is_closed = closed
    snapshot.closed_at = datetime.now(timezone.utc) if closed else None


def upsert_snapshot(
    db: Session,
    preview: MonthlySnapshotPreview,
    *,
    closed: bool,
) -> tuple[MonthlySnapshot, bool]:
    """Insert or update the row for ``preview``'s (user, year, month).

    Returns the row and whether it was newly created. A concurrent insert of
    the same key loses the savepoint and falls through to an update.
    """
    existing = get_snapshot(db, preview.user_id, preview.year, preview.month)
    if existing is None:
        snapshot = MonthlySnapshot(user_id=preview.user_id, year=preview.year, month=preview.month)
        _apply(snapshot, preview, closed=closed)
        try:
            with db.begin_nested():
                db.add(snapshot)
                db.flush()
            return snapshot, True
        except IntegrityError:
            logger.warning(
                "Concurrent snapshot insert user_id=%s period=%04d-%02d, updating instead",
                preview.user_id,
                preview.year,
                preview.month,
            )
            existing = get_snapshot(db, preview.user_id, preview.year, preview.month)
            if existing is None:
                raise

    _apply(existing, preview, closed=closed)
    db.flush()
    return existing, False


def get_month_view(
    db: Session,
    user: User,
    year: int,
    month: int,
    *,
    persist_draft: bool = False,
) -> MonthlySnapshot | MonthlySnapshotPreview:
    existing = get_snapshot(db, user.id, year, month)
    if existing is not None and existing.is_closed:
        return existing

    preview = compute_monthly_snapshot(user.id, year, month, db=db)
    if not persist_draft:
        return preview

    snapshot, _ = upsert_snapshot(db, preview, closed=False)
    return snapshot


def close_month(
    db: Session,
    user: User,
    year: int,
    month: int,
    *,
    force_recalculate: bool = False,
    actor: User | None = None,
) -> tuple[MonthlySnapshot, bool]:
    existing = get_snapshot(db, user.id, year, month)
    if existing is not None and existing.is_closed and not force_recalculate:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Month is already closed. Use force_recalculate=true to recompute it.",
        )

    before = audit_state(existing)
    was_closed = existing is not None and existing.is_closed

    refresh_borrowed_fund_valuations(db, user.id)
    preview = compute_monthly_snapshot(user.id, year, month, db=db)
    snapshot, created = upsert_snapshot(db, preview, closed=True)

    log_audit(
        db,
        actor=actor or user,
        action="snapshot.recalculate" if was_closed else "snapshot.close",
        entity_type="monthly_snapshot",
        entity_id=str(snapshot.id),
        year=year,
        month=month,
        before_state=before,
        after_state=audit_state(snapshot),
    )
    logger.info(
        "%s month user_id=%s period=%04d-%02d surplus=%s",
        "Recalculated" if was_closed else "Closed",
        user.id,
        year,
        month,
        snapshot.surplus_amount,
    )
    return snapshot, created


def close_previous_month_for_all_users(db: Session, today: date) -> CronCloseResult:
    year, month = previous_month(today.year, today.month)
    users = list(db.scalars(select(User).where(User.is_active.is_(True)).order_by(User.id)).all())
    result = CronCloseResult(year=year, month=month, total_users=len(users))
    logger.info("Closing %04d-%02d for %s active users", year, month, len(users))

    for user in users:
        user_id = user.id
        existing = get_snapshot(db, user_id, year, month)
        if existing is not None and existing.is_closed:
            result.skipped += 1
            continue
        try:
            _, created = close_month(db, user, year, month)
            db.commit()
        except Exception as exc:
            db.rollback()
            logger.exception("Snapshot close failed user_id=%s period=%04d-%02d", user_id, year, month)
            result.failed += 1
            result.failures.append({"user_id": user_id, "error": str(exc)})
            continue
        if created:
            result.created += 1
        else:
            result.updated += 1

    logger.info(
        "Cron close %04d-%02d created=%s updated=%s skipped=%s failed=%s",
        year,
        month,
        result.created,
        result.updated,
        result.skipped,
        result.failed,
    )
    return result

from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.orm import Session

from fintrack.api.deps import get_current_user, get_db
from fintrack.core.config import get_settings
from fintrack.models.snapshot import MonthlySnapshot
from fintrack.models.user import User
from fintrack.schemas.snapshots import CloseMonthRequest, CloseMonthResponse, MonthlySnapshotOut
from fintrack.services.lifecycle import close_month, get_month_view


router = APIRouter(prefix="/monthly-snapshot", tags=["snapshots"])


@router.get("", response_model=MonthlySnapshotOut)
def get_monthly_snapshot(
    month: int | None = Query(default=None, ge=1, le=12),
    year: int | None = Query(default=None, ge=1900, le=9999),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> MonthlySnapshotOut:
    today = date.today()
    persist_draft = get_settings().persist_draft_snapshots
    view = get_month_view(
        db,
        current_user,
        year if year is not None else today.year,
        month if month is not None else today.month,
        persist_draft=persist_draft,
    )
    if persist_draft:
        db.commit()
    return MonthlySnapshotOut.model_validate(view)


@router.post("", response_model=CloseMonthResponse)
def close_monthly_snapshot(
    payload: CloseMonthRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> CloseMonthResponse:
    snapshot, created = close_month(
        db,
        current_user,
        payload.year,
        payload.month,
        force_recalculate=payload.force_recalculate,
    )
    db.commit()
    return CloseMonthResponse(
        message="Snapshot created and month closed." if created else "Snapshot recalculated and month closed.",
        created=created,
        snapshot=MonthlySnapshotOut.model_validate(snapshot),
    )


@router.get("/history", response_model=list[MonthlySnapshotOut])
def list_snapshot_history(
    limit: int = 24,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> list[MonthlySnapshotOut]:
    rows = list(
        db.scalars(
            select(MonthlySnapshot)
            .where(MonthlySnapshot.user_id == current_user.id)
            .order_by(MonthlySnapshot.year.desc(), MonthlySnapshot.month.desc())
            .limit(max(1, min(limit, 120)))
        ).all()
    )
    return [MonthlySnapshotOut.model_validate(row) for row in rows]

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.orm import Session

from fintrack.api.deps import get_current_user, get_db
from fintrack.core.security import require_roles
from fintrack.models.audit import AuditLog
from fintrack.models.enums import RoleName
from fintrack.models.user import User
from fintrack.schemas.audit import AuditLogOut


router = APIRouter(tags=["audit"])


@router.get("/audit", response_model=list[AuditLogOut])
def list_audit_log(
    user_id: int | None = None,
    year: int | None = None,
    month: int | None = None,
    limit: int = 200,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> list[AuditLogOut]:
    actor_id = current_user.id
    if user_id is not None and user_id != current_user.id:
        require_roles(current_user, [RoleName.super_admin])
        actor_id = user_id

    query = select(AuditLog).where(AuditLog.actor_user_id == actor_id)
    if year is not None:
        query = query.where(AuditLog.year == year)
    if month is not None:
        query = query.where(AuditLog.month == month)
    rows = list(
        db.scalars(
            query.order_by(AuditLog.created_at.desc(), AuditLog.id.desc()).limit(max(1, min(limit, 500)))
        ).all()
    )
    return [AuditLogOut.model_validate(row) for row in rows]

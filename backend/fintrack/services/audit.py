from __future__ import annotations

from sqlalchemy.orm import Session

from fintrack.models.audit import AuditLog
from fintrack.models.user import User


def log_audit(
    db: Session,
    *,
    actor: User,
    action: str,
    entity_type: str,
    entity_id: str,
    year: int | None = None,
    month: int | None = None,
    before_state: dict | None = None,
    after_state: dict | None = None,
) -> AuditLog:
    log = AuditLog(
        actor_user_id=actor.id,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        year=year,
        month=month,
        before_state=before_state,
        after_state=after_state,
    )
    db.add(log)
    return log

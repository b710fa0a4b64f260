from datetime import datetime

from fintrack.schemas.common import ORMModel


class AuditLogOut(ORMModel):
    id: int
    actor_user_id: int
    year: int | None
    month: int | None
    action: str
    entity_type: str
    entity_id: str
    before_state: dict | None
    after_state: dict | None
    created_at: datetime

import secrets
from collections.abc import Generator
from datetime import datetime, timezone

from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy.orm import Session

from fintrack.core.config import get_settings
from fintrack.core.throttle import TouchThrottle
from fintrack.db.session import SessionLocal
from fintrack.models.user import User


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def _touch_last_seen(request: Request, db: Session, user: User) -> None:
    throttle: TouchThrottle | None = getattr(request.app.state, "touch_throttle", None)
    if throttle is not None and not throttle.should_touch(user.id):
        return
    user.last_seen_at = datetime.now(timezone.utc)
    db.commit()


def get_current_user(
    request: Request,
    db: Session = Depends(get_db),
    x_user_id: int | None = Header(default=None),
) -> User:
    if x_user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required.",
        )

    user = db.get(User, x_user_id)
    if user is None or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid user.",
        )
    _touch_last_seen(request, db, user)
    return user


def verify_cron_secret(authorization: str | None = Header(default=None)) -> None:
    expected = f"Bearer {get_settings().cron_secret}"
    if authorization is None or not secrets.compare_digest(authorization, expected):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid cron credentials.",
        )

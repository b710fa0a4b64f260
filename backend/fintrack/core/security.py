from collections.abc import Iterable

from fastapi import HTTPException, status

from fintrack.models.enums import RoleName
from fintrack.models.user import User


def require_roles(user: User, allowed_roles: Iterable[RoleName]) -> None:
    allowed = {role.value for role in set(allowed_roles)}
    if user.role == RoleName.super_admin:
        return
    if user.role.value in allowed:
        return
    raise HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail="Insufficient role privileges.",
    )

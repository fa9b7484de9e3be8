from fastapi import Depends, HTTPException, status

from app.models.enums.user_role import UserRole
from app.models.users.user_models import User
from app.utils.get_user import get_current_user
from app.utils.role_helpers import resolve_role


def require_role(roles: list[UserRole]):
    allowed = set(roles)

    async def role_checker(user: User = Depends(get_current_user)):
        if resolve_role(user) not in allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Permission denied"
            )
        return user
    return role_checker

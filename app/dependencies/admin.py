from fastapi import Depends, HTTPException, status

from app.models.user import User
from app.utils.token import get_current_user


def require_admin(current_user: User = Depends(get_current_user)) -> User:
    """Gate for order status updates, order listings/stats and catalogue edits."""
    if not current_user.is_admin:
        raise HTTPException(status.HTTP_403_FORBIDDEN, "Admin access required")
    return current_user

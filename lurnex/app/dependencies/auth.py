"""Role-gated dependencies layered on top of the bearer-token user lookup."""

from fastapi import Depends, HTTPException, status

from lurnex.app.core.security import get_current_admin, get_current_user
from lurnex.app.models.user import User

__all__ = ["get_current_user", "get_current_admin", "get_current_student", "get_current_trainer"]


def get_current_student(current_user: User = Depends(get_current_user)) -> User:
    if current_user.role != "student":
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Student access required")
    return current_user


def get_current_trainer(current_user: User = Depends(get_current_user)) -> User:
    if current_user.role != "trainer":
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Trainer access required")
    return current_user

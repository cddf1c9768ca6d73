# sinmungo/core/rbac.py
from __future__ import annotations

from typing import Optional

from fastapi import Depends

from sinmungo.core.auth import get_current_user
from sinmungo.core.errors import AuthenticationRequired, PermissionDenied
from sinmungo.models.user import User

ADMIN_ROLES = {"admin"}


def _role(user: Optional[User]) -> str:
    return (user.role or "").strip().lower() if user else ""


def is_admin(user: Optional[User]) -> bool:
    return _role(user) in ADMIN_ROLES


def ensure_authenticated(user: Optional[User]) -> User:
    """Raise 401 when the write path is called without an identity."""
    if user is None:
        raise AuthenticationRequired("로그인이 필요합니다.")
    return user


def ensure_admin(user: Optional[User]) -> User:
    """Raise 403 if user is not an admin."""
    ensure_authenticated(user)
    if not is_admin(user):
        raise PermissionDenied("관리자 권한이 필요합니다.")
    return user


def require_admin(current_user: User = Depends(get_current_user)) -> User:
    """FastAPI dependency guarding the /admin routes."""
    return ensure_admin(current_user)

# sinmungo/core/auth.py
from datetime import datetime, timedelta
from typing import Optional

from fastapi import Depends, HTTPException, status, Request
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from sqlalchemy import func
from sqlalchemy.orm import Session

from sinmungo.db.session import SessionLocal
from sinmungo.models.user import User
from sinmungo.core.security import verify_password, SECRET_KEY, ALGORITHM

# OAuth2 bearer scheme for Swagger "Authorize" button and DI
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/login")
# Same scheme for public read paths: missing token means anonymous reader
oauth2_scheme_optional = OAuth2PasswordBearer(tokenUrl="/api/v1/login", auto_error=False)

# Lockout policy
MAX_FAILED_ATTEMPTS = 3
LOCKOUT_MINUTES = 15


def get_db():
    """Yield a DB session and make sure it's closed afterwards."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def _is_locked(user: User, now: Optional[datetime] = None) -> bool:
    now = now or datetime.utcnow()
    return bool(user.locked_until and user.locked_until > now)


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(func.lower(User.email) == email.strip().lower()).first()


def authenticate_user(db: Session, email: str, password: str) -> Optional[User]:
    """
    Attempt authentication:
      - if user doesn't exist → return None (do not reveal existence)
      - if user is deactivated → 403
      - if account is locked → 429
      - if password is correct → reset counters, stamp last_login_at and return user
      - if password is incorrect → increment counter, lock if needed, return None
    """
    user = get_user_by_email(db, email)
    if not user:
        return None

    if user.is_active is False:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="User is disabled")

    if _is_locked(user):
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=(
                "Your account is temporarily locked due to too many failed sign-in attempts. "
                f"Please try again in {LOCKOUT_MINUTES} minutes."
            ),
        )

    if verify_password(password, user.hashed_password):
        user.failed_login_attempts = 0
        user.locked_until = None
        user.last_login_at = datetime.utcnow()
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    user.failed_login_attempts = int(user.failed_login_attempts or 0) + 1
    if user.failed_login_attempts >= MAX_FAILED_ATTEMPTS:
        user.locked_until = datetime.utcnow() + timedelta(minutes=LOCKOUT_MINUTES)
        user.failed_login_attempts = 0  # reset after locking

    db.add(user)
    db.commit()
    return None


def _user_from_token(db: Session, token: str) -> Optional[User]:
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        return None
    email: Optional[str] = payload.get("sub")
    if not email:
        return None
    return get_user_by_email(db, email)


def _expose_user_context(request: Request, user: User) -> None:
    # Used by the request logger
    request.state.user_id = user.id
    request.state.is_admin = user.role == "admin"


def get_current_user(
    request: Request,
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> User:
    """
    Decode JWT and load the user from DB or return 401.
    Rejects deactivated users (403).
    """
    user = _user_from_token(db, token)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if user.is_active is False:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="User is disabled")

    _expose_user_context(request, user)
    return user


def get_current_user_optional(
    request: Request,
    token: Optional[str] = Depends(oauth2_scheme_optional),
    db: Session = Depends(get_db),
) -> Optional[User]:
    """
    Identity for public read paths: anonymous when no (or an invalid) token is sent.
    """
    if not token:
        return None
    user = _user_from_token(db, token)
    if user is None or user.is_active is False:
        return None
    _expose_user_context(request, user)
    return user

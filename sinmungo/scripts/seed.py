#!/usr/bin/env python3
"""
Minimal seed:
- Creates the tables if they are missing.
- Ensures an admin user exists (ADMIN_EMAIL / ADMIN_PASSWORD).
- Safe to run multiple times (idempotent).

Usage: python -m sinmungo.scripts.seed
"""
import os

from dotenv import find_dotenv, load_dotenv
from sqlalchemy.orm import Session

load_dotenv(find_dotenv(usecwd=True))

from sinmungo.core.auth import get_user_by_email  # noqa: E402
from sinmungo.core.security import get_password_hash  # noqa: E402
from sinmungo.db.session import SessionLocal, engine  # noqa: E402
from sinmungo.models import Base  # noqa: E402
from sinmungo.models.user import User  # noqa: E402
from sinmungo.services import audit  # noqa: E402,F401


def ensure_admin(db: Session, email: str, password: str, nickname: str = "운영자") -> User:
    user = get_user_by_email(db, email)
    if user:
        # promote / re-enable if needed; the password is left alone
        if user.role != "admin" or not user.is_active:
            user.role = "admin"
            user.is_active = True
            db.add(user)
            db.commit()
            db.refresh(user)
        return user

    user = User(
        email=email.strip().lower(),
        nickname=nickname,
        role="admin",
        is_active=True,
        hashed_password=get_password_hash(password),
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def main():
    email = os.environ.get("ADMIN_EMAIL", "admin@example.com")
    password = os.environ.get("ADMIN_PASSWORD", "ChangeMe123!")

    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        u = ensure_admin(db, email, password)
        print(f"OK: admin ensured -> {u.email} (id={u.id})")
    finally:
        db.close()


if __name__ == "__main__":
    main()

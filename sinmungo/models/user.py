# sinmungo/models/user.py
from sqlalchemy import (
    Column,
    Integer,
    String,
    DateTime,
    Boolean,
    func,
    text,
)

from sinmungo.db.base import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True)

    # Credentials
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)

    # Profile / RBAC
    nickname = Column(String(50), nullable=False)
    role = Column(String(20), nullable=False, server_default="citizen", index=True)  # citizen | admin
    is_active = Column(Boolean, nullable=False, server_default=text("1"))

    # Login security
    failed_login_attempts = Column(Integer, nullable=False, server_default=text("0"))
    locked_until = Column(DateTime, nullable=True, index=True)
    last_login_at = Column(DateTime, nullable=True)

    # Timestamps
    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email!r} role={self.role!r}>"

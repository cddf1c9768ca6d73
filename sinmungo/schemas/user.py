# sinmungo/schemas/user.py
from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field, constr


class UserRegister(BaseModel):
    email: EmailStr
    password: constr(min_length=8, max_length=72)
    nickname: constr(strip_whitespace=True, min_length=2, max_length=50)


class UserOut(BaseModel):
    id: int
    email: EmailStr
    nickname: str
    role: str
    is_active: bool
    last_login_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True


class Token(BaseModel):
    access_token: str
    token_type: str = Field(default="bearer")

# sinmungo/api/v1/auth.py
from datetime import timedelta

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from sinmungo.core.auth import authenticate_user, get_current_user, get_db, get_user_by_email
from sinmungo.core.errors import Conflict
from sinmungo.core.security import ACCESS_TOKEN_EXPIRE_MINUTES, create_access_token, get_password_hash
from sinmungo.models.user import User
from sinmungo.schemas.user import Token, UserOut, UserRegister
from sinmungo.services.audit import audit_log, ip_from_request

router = APIRouter()


@router.post("/register", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def register(payload: UserRegister, request: Request, db: Session = Depends(get_db)):
    """Create a citizen account. Admins are provisioned by the seed script."""
    if get_user_by_email(db, payload.email):
        raise Conflict("이미 가입된 이메일입니다.")

    user = User(
        email=payload.email.strip().lower(),
        hashed_password=get_password_hash(payload.password),
        nickname=payload.nickname,
        role="citizen",
    )
    db.add(user)
    db.commit()
    db.refresh(user)

    audit_log(
        db,
        user_id=user.id,
        action="USER_REGISTERED",
        entity_type="user",
        entity_id=user.id,
        meta={"email": user.email},
        ip=ip_from_request(request),
    )
    return user


@router.post("/login", response_model=Token)
def login(
    request: Request,
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db),
):
    email = (form_data.username or "").strip()
    ip = ip_from_request(request)

    # Lockout and disabled accounts surface as 429 / 403 from authenticate_user
    user = authenticate_user(db, email, form_data.password)
    if not user:
        audit_log(
            db,
            user_id=None,
            action="LOGIN_FAILED",
            entity_type="auth",
            entity_id=None,
            meta={"email": email},
            ip=ip,
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    audit_log(
        db,
        user_id=user.id,
        action="LOGIN_SUCCESS",
        entity_type="auth",
        entity_id=user.id,
        meta={"email": user.email, "method": "password"},
        ip=ip,
    )
    access_token = create_access_token(
        data={"sub": user.email},
        expires_delta=timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES),
    )
    return {"access_token": access_token, "token_type": "bearer"}


@router.get("/me", response_model=UserOut)
def get_me(current_user: User = Depends(get_current_user)):
    return current_user

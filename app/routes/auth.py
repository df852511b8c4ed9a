from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select
from app.database import get_session
from app.models.user import User
from app.schemas.user_schemas import UserRegister, UserLogin, Token, UserResponse, UserMe
from app.utils.hash import hash_password, verify_password
from app.utils.token import create_access_token, get_current_user


router = APIRouter()


# -------- AUTH ROUTES --------

@router.post("/register", response_model=UserResponse, status_code=201)
def register_user(payload: UserRegister, session: Session = Depends(get_session)):
    email = payload.email.lower()
    existing_user = session.exec(select(User).where(User.email == email)).first()
    if existing_user:
        raise HTTPException(400, "Email already registered")

    user = User(
        name=payload.name,
        email=email,
        phone=payload.phone,
        password=hash_password(payload.password)
    )

    session.add(user)
    session.commit()
    session.refresh(user)

    return UserResponse(
        message="Registration successful.",
        user_id=user.id,
        name=user.name,
        email=user.email,
        role=user.role,
    )


@router.post("/login", response_model=Token)
def login(payload: UserLogin, session: Session = Depends(get_session)):
    user = session.exec(select(User).where(User.email == payload.email.lower())).first()

    if not user or not verify_password(payload.password, user.password):
        raise HTTPException(401, "Invalid email or password")

    if not user.is_active:
        raise HTTPException(403, "User account is disabled")

    token = create_access_token(user)
    return Token(access_token=token, token_type="bearer")


@router.get("/me", response_model=UserMe)
def me(current_user: User = Depends(get_current_user)):
    return current_user

from datetime import date
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from passlib.context import CryptContext
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from auth.jwt import create_access_token, get_current_user
from config import settings
from database import get_db
from models.user import User
from routers.dependencies import get_current_account, get_today
from schema.user import TokenResponse, UserCreate, UserLogin, UserPasswordUpdate, UserResponse

logger = logging.getLogger("one_smile")

auth_router = APIRouter(prefix="/auth", tags=["Authentication"])
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def _check_password_length(password: str):
    if len(password) < settings.PASSWORD_MIN_LENGTH:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Password must be at least {settings.PASSWORD_MIN_LENGTH} characters"
        )


def _token_response(user: User) -> dict:
    access_token = create_access_token(data={"user_id": user.id})
    return {"access_token": access_token, "token_type": "bearer", "user": user}


@auth_router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
def register(
    data: UserCreate,
    db: Session = Depends(get_db),
    today: date = Depends(get_today),
):
    email = data.email.lower()
    _check_password_length(data.password)

    # Check if user exists
    existing_user = db.query(User).filter(User.email == email).first()
    if existing_user:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="A user with that email already exists."
        )

    new_user = User(
        email=email,
        password_hash=pwd_context.hash(data.password),
        signup_date=today,
    )

    try:
        db.add(new_user)
        db.commit()
        db.refresh(new_user)
    except IntegrityError:
        # Lost a race against a concurrent registration of the same email
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="A user with that email already exists."
        )

    logger.info(f"👤 Registered user {new_user.id} (signup {today.isoformat()})", extra={"color": True})
    return _token_response(new_user)


@auth_router.post("/login", response_model=TokenResponse)
def login(data: UserLogin, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == data.email.lower()).first()
    if not user or not pwd_context.verify(data.password, user.password_hash):
        raise HTTPException(status_code=401, detail="Invalid credentials")

    return _token_response(user)


@auth_router.get("/me", response_model=UserResponse)
def me(user: User = Depends(get_current_account)):
    return user


@auth_router.post("/change-password")
def change_password(
    data: UserPasswordUpdate,
    user: User = Depends(get_current_account),
    db: Session = Depends(get_db),
):
    if not pwd_context.verify(data.current_password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Current password is incorrect"
        )

    _check_password_length(data.new_password)

    user.password_hash = pwd_context.hash(data.new_password)
    db.commit()

    logger.info(f"🔑 User {user.id} changed password", extra={"color": True})
    return {"message": "Password updated successfully", "success": True}


@auth_router.get('/validate')
def validate_token(current_user=Depends(get_current_user)):
    return {
        "user_id": current_user["user_id"],
        "valid": True
    }

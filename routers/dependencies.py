"""
Dependency wiring shared by the routers.
"""
from datetime import date
from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from auth.jwt import get_current_user
from config import settings
from database import get_db
from models.user import User
from utils.timezone_utils import get_user_today


def get_today(
    x_timezone_offset: Optional[int] = Header(
        None, description="Minutes from Date.getTimezoneOffset(), e.g. -120 for UTC+2"
    ),
) -> date:
    """
    The caller's calendar date. Tests override this dependency to pin the clock.
    """
    offset = settings.DEFAULT_TZ_OFFSET_MINUTES if x_timezone_offset is None else x_timezone_offset
    try:
        return get_user_today(offset)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


def get_current_account(
    current_user: dict = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> User:
    user = db.query(User).filter(User.id == current_user["user_id"]).first()
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user

from pydantic import BaseModel, Field, EmailStr, ConfigDict
from typing import Optional
from datetime import date, datetime

class UserCreate(BaseModel):
    """Schema for registering a new account"""
    email: EmailStr = Field(..., description="User's email address")
    password: str = Field(..., max_length=255, description="User's password")

class UserLogin(BaseModel):
    """Schema for user login"""
    email: EmailStr = Field(..., description="User's email address")
    password: str = Field(..., description="User's password")

class UserPasswordUpdate(BaseModel):
    """Schema for updating user password"""
    current_password: str = Field(..., description="Current password")
    new_password: str = Field(..., max_length=255, description="New password")

class UserResponse(BaseModel):
    """Schema for user response (excludes sensitive data)"""
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: EmailStr
    signup_date: date
    created_at: Optional[datetime] = None

class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserResponse

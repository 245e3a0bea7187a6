"""
Pydantic models for account requests and responses.
"""

from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel, EmailStr, Field, validator


class RegisterRequest(BaseModel):
    """Parent signup with the access code from the enrollment slip."""
    email: EmailStr = Field(..., description="Parent's email address")
    password: str = Field(..., min_length=6, description="Password (minimum 6 characters)")
    display_name: str = Field(..., min_length=1, max_length=100, description="Parent's name")
    access_code: str = Field(..., min_length=1, max_length=32, description="Access code issued by staff")

    @validator('email')
    def email_lowercase(cls, v):
        return v.strip().lower()

    @validator('access_code')
    def access_code_upper(cls, v):
        return v.strip().upper()


class UserLogin(BaseModel):
    """Request model for email/password login."""
    email: str = Field(..., min_length=1, description="Email address")
    password: str = Field(..., min_length=1, description="Password")


class GoogleAuthRequest(BaseModel):
    """Request model for Google sign-in."""
    code: str = Field(..., description="Authorization code from Google OAuth")
    state: Optional[str] = Field(None, description="State parameter for CSRF protection")
    access_code: Optional[str] = Field(None, max_length=32, description="Optional access code to redeem")


class UserResponse(BaseModel):
    """Response model for user data."""
    id: str
    email: Optional[str]
    display_name: str
    role: str
    auth_provider: str
    linked_child_ids: List[str] = []
    created_at: Optional[datetime]
    last_login_at: Optional[datetime]

    class Config:
        from_attributes = True


class TokenResponse(BaseModel):
    """Response model for authentication."""
    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="bearer", description="Token type")
    user: UserResponse = Field(..., description="User information")
    linked_child_id: Optional[str] = Field(None, description="Child linked by the access code, if any")
    link_error: Optional[str] = Field(None, description="Why the access code could not be redeemed")

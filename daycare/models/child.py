"""
Pydantic models for child enrollment.
"""

from typing import Optional
from datetime import date, datetime
from pydantic import BaseModel, EmailStr, Field


class ChildCreate(BaseModel):
    """Staff request to enroll a child and issue the parent's access code."""
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    date_of_birth: Optional[date] = None
    group: Optional[str] = Field(None, pattern="^(Infant|Toddler|Pre-K)$", description="Derived from age when omitted")
    parent_email: EmailStr
    parent_name: Optional[str] = Field(None, max_length=200)
    max_uses: int = Field(default=1, ge=1, le=10, description="Redemptions allowed for the code")
    expires_in_days: int = Field(default=30, ge=1, le=365, description="Days until the code expires")


class ChildResponse(BaseModel):
    """Response model for a child record."""
    id: str
    first_name: str
    last_name: str
    date_of_birth: Optional[date]
    group: Optional[str]
    parent_email: str
    parent_name: Optional[str]
    parent_id: Optional[str]
    parent_registered: bool
    parent_registered_at: Optional[datetime]
    access_code: Optional[str]
    created_at: Optional[datetime]

    class Config:
        from_attributes = True


class ParentChildResponse(BaseModel):
    """A child as shown on the parent dashboard (no access code)."""
    id: str
    first_name: str
    last_name: str
    date_of_birth: Optional[date]
    group: Optional[str]
    parent_registered: bool

    class Config:
        from_attributes = True

"""
Pydantic models for access codes.
"""

from typing import Optional
from datetime import datetime
from pydantic import BaseModel, Field

from .child import ChildResponse


class AccessCodeResponse(BaseModel):
    """Full access code record (staff only)."""
    code: str
    child_id: str
    parent_email: str
    parent_name: Optional[str]
    child_name: Optional[str]
    created_at: Optional[datetime]
    expires_at: datetime
    max_uses: int
    uses_left: int
    used: bool
    parent_id: Optional[str]
    used_at: Optional[datetime]
    note: Optional[str]

    class Config:
        from_attributes = True


class AccessCodePreview(BaseModel):
    """Public preview of a code, shown on the signup page."""
    code: str
    child_name: Optional[str]
    expires_at: datetime
    is_valid: bool

    class Config:
        from_attributes = True


class ChildCreatedResponse(BaseModel):
    """Enrollment result: the child and the code to hand the parent."""
    child: ChildResponse
    access_code: AccessCodeResponse


class AccessCodeCreate(BaseModel):
    """Staff request for a fresh code for an enrolled child."""
    code: Optional[str] = Field(None, max_length=32, description="Staff-chosen code; generated when omitted")
    max_uses: int = Field(default=1, ge=1, le=10)
    expires_in_days: int = Field(default=30, ge=1, le=365)
    note: Optional[str] = Field(None, max_length=500)


class RedeemRequest(BaseModel):
    """Access code entered by a signed-in parent."""
    code: str = Field(..., min_length=1, max_length=32)


class RedeemResponse(BaseModel):
    child_id: str
    uses_left: int
    linked: bool = Field(..., description="False when the child already belongs to an earlier redeemer")

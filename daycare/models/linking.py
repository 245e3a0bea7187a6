"""
Pydantic models for child resolution and link repair.
"""

from typing import List, Optional
from pydantic import BaseModel, EmailStr, Field

from .access_code import AccessCodeResponse
from .child import ChildResponse, ParentChildResponse
from .user import UserResponse


class StrategyAttemptResponse(BaseModel):
    name: str
    found: int
    child_ids: List[str]
    error: Optional[str]


class ResolvedChildrenResponse(BaseModel):
    """Dashboard children plus the trail of strategies that produced them."""
    children: List[ParentChildResponse]
    strategies_tried: List[StrategyAttemptResponse]
    errors: List[str]
    matched_by: Optional[str]
    ambiguous: bool


class RepairRequest(BaseModel):
    parent_email: EmailStr = Field(..., description="Email of the parent account to repair")


class ChildMatchResponse(BaseModel):
    child_id: str
    child_name: str
    email_match: bool
    code_match: bool
    previous_parent_id: Optional[str]
    linked: bool
    error: Optional[str]


class RepairResponse(BaseModel):
    user_id: str
    email: str
    matched_child_ids: List[str]
    matches: List[ChildMatchResponse]
    linked_child_ids: List[str]
    linked_children_updated: bool
    code_update: str
    ambiguous: bool
    errors: List[str]


class LinkStateResponse(BaseModel):
    """Every account, child and code, for diagnosing broken links."""
    users: List[UserResponse]
    children: List[ChildResponse]
    access_codes: List[AccessCodeResponse]

"""
User Pydantic schemas for the account endpoints.
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class UserMe(BaseModel):
    """The caller's account with effective roles and permissions."""

    id: UUID
    first_name: str
    last_name: str
    email: str
    is_active: bool
    created_at: datetime
    roles: List[str]
    permissions: List[str]


class UserMeResponse(BaseModel):
    user: UserMe


class UserSummary(BaseModel):
    """Simplified user schema for listings and search results."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    first_name: str
    last_name: str
    email: str
    phone: Optional[str] = None

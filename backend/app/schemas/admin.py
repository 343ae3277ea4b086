"""
Admin and role/permission management schemas.
"""

from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


class BlockUserRequest(BaseModel):
    block: bool = Field(..., description="True to block, False to unblock")
    reason: Optional[str] = Field(None, max_length=500, description="Required when blocking")


class FeatureJobRequest(BaseModel):
    featured: bool = True


class RoleCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=50)
    description: Optional[str] = Field(None, max_length=255)

    @field_validator("name")
    @classmethod
    def normalize_name(cls, v):
        return v.strip().upper()


class RoleUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=50)
    description: Optional[str] = Field(None, max_length=255)

    @field_validator("name")
    @classmethod
    def normalize_name(cls, v):
        return v.strip().upper() if v else v


class PermissionCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=100)
    description: Optional[str] = Field(None, max_length=255)
    category: Optional[str] = Field(None, max_length=50)

    @field_validator("name")
    @classmethod
    def normalize_name(cls, v):
        return v.strip().upper()


class RolePermissionsUpdate(BaseModel):
    permissions: List[str] = Field(default_factory=list)


class UserRolesUpdate(BaseModel):
    roles: List[str] = Field(default_factory=list)


class UserPermissionGrant(BaseModel):
    permission: str = Field(..., min_length=1, max_length=100)

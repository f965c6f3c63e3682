# organization_schema.py
from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import List, Optional
from datetime import datetime

from models.models import Role


def _normalize_domain(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip().lower()
    return value or None


class OrganizationCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    domain: Optional[str] = Field(default=None, max_length=255)
    should_attach_users_by_domain: bool = False

    # slug and owner_id are set by the server during creation

    @field_validator("domain")
    @classmethod
    def normalize_domain(cls, value: Optional[str]) -> Optional[str]:
        return _normalize_domain(value)


class OrganizationUpdate(OrganizationCreate):
    pass


class OrganizationCreated(BaseModel):
    organization_id: str


class OrganizationRead(BaseModel):
    id: str
    name: str
    slug: str
    domain: Optional[str] = None
    should_attach_users_by_domain: bool = False
    avatar_url: Optional[str] = None
    owner_id: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class OrganizationResponse(BaseModel):
    organization: OrganizationRead


class OrganizationWithRole(BaseModel):
    id: str
    name: str
    slug: str
    avatar_url: Optional[str] = None
    role: Role


class OrganizationList(BaseModel):
    organizations: List[OrganizationWithRole]


class TransferOwnership(BaseModel):
    transfer_to_user_id: str


# ---------------------------
# Membership
# ---------------------------
class MembershipRead(BaseModel):
    id: str
    role: Role
    organization_id: str
    user_id: str

    model_config = ConfigDict(from_attributes=True)


class MembershipResponse(BaseModel):
    membership: MembershipRead

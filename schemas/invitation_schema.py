from pydantic import BaseModel, EmailStr, ConfigDict, field_validator
from typing import List, Optional
from datetime import datetime

from models.models import Role
from schemas.user_schema import UserSummary


# ============================================================
# ✅ Create Invite (input)
# ============================================================
class InviteCreate(BaseModel):
    email: EmailStr
    role: Role = Role.MEMBER
    # organization_id and author_id are set server-side

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, value: str) -> str:
        return value.lower()


class InviteCreated(BaseModel):
    invite_id: str


# ============================================================
# ✅ Read Invite (output)
# ============================================================
class InviteOrganization(BaseModel):
    name: str

    model_config = ConfigDict(from_attributes=True)


class InviteRead(BaseModel):
    id: str
    email: str
    role: Role
    created_at: datetime
    author: Optional[UserSummary] = None

    model_config = ConfigDict(from_attributes=True)


class InviteDetail(InviteRead):
    organization: InviteOrganization


class InviteResponse(BaseModel):
    invite: InviteDetail


class InviteList(BaseModel):
    invites: List[InviteRead]


class PendingInviteList(BaseModel):
    invites: List[InviteDetail]

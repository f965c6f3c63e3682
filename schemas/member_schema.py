# member_schema.py
from pydantic import BaseModel
from typing import List, Optional

from models.models import Role


class MemberRead(BaseModel):
    id: str
    user_id: str
    role: Role
    name: Optional[str] = None
    email: str
    avatar_url: Optional[str] = None


class MemberList(BaseModel):
    members: List[MemberRead]


class MemberUpdate(BaseModel):
    role: Role

# project_schema.py
from pydantic import BaseModel, Field, ConfigDict
from typing import List, Optional
from datetime import datetime

from schemas.user_schema import UserSummary


class ProjectCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: str = Field(default="", max_length=1000)
    # organization_id, owner_id and slug are set server-side


class ProjectUpdate(ProjectCreate):
    pass


class ProjectCreated(BaseModel):
    project_id: str


class ProjectRead(BaseModel):
    id: str
    name: str
    description: str
    slug: str
    avatar_url: Optional[str] = None
    organization_id: str
    owner_id: str
    created_at: datetime
    owner: Optional[UserSummary] = None

    model_config = ConfigDict(from_attributes=True)


class ProjectResponse(BaseModel):
    project: ProjectRead


class ProjectList(BaseModel):
    projects: List[ProjectRead]

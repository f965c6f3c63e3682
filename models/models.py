# models/models.py
import uuid
from datetime import datetime
from enum import Enum
from typing import List, Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, Relationship, SQLModel


# ============================================================
# ENUMS
# ============================================================
class Role(str, Enum):
    ADMIN = "ADMIN"
    MEMBER = "MEMBER"
    BILLING = "BILLING"


class TokenType(str, Enum):
    PASSWORD_RECOVER = "PASSWORD_RECOVER"


class AccountProvider(str, Enum):
    GITHUB = "GITHUB"


def _new_id() -> str:
    return str(uuid.uuid4())


# ============================================================
# USER
# ============================================================
class User(SQLModel, table=True):
    __tablename__ = "users"

    id: str = Field(default_factory=_new_id, primary_key=True, max_length=36)
    name: Optional[str] = Field(default=None, max_length=100)
    email: str = Field(index=True, unique=True, max_length=255, nullable=False)
    # Null for accounts created through social login only
    password_hash: Optional[str] = Field(default=None)
    avatar_url: Optional[str] = Field(default=None)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    tokens: List["Token"] = Relationship(
        back_populates="user",
        sa_relationship_kwargs={"cascade": "all, delete-orphan"},
    )
    accounts: List["Account"] = Relationship(
        back_populates="user",
        sa_relationship_kwargs={"cascade": "all, delete-orphan"},
    )
    member_on: List["Member"] = Relationship(back_populates="user")
    invites: List["Invite"] = Relationship(back_populates="author")
    owns_organizations: List["Organization"] = Relationship(back_populates="owner")
    owns_projects: List["Project"] = Relationship(back_populates="owner")


class Token(SQLModel, table=True):
    __tablename__ = "tokens"

    id: str = Field(default_factory=_new_id, primary_key=True, max_length=36)
    type: str = Field(default=TokenType.PASSWORD_RECOVER.value, max_length=32)
    created_at: datetime = Field(default_factory=datetime.utcnow)

    user_id: str = Field(foreign_key="users.id", index=True)
    user: Optional[User] = Relationship(back_populates="tokens")


class Account(SQLModel, table=True):
    __tablename__ = "accounts"
    __table_args__ = (UniqueConstraint("provider", "user_id", name="uq_account_provider_user"),)

    id: str = Field(default_factory=_new_id, primary_key=True, max_length=36)
    provider: str = Field(default=AccountProvider.GITHUB.value, max_length=32)
    provider_account_id: str = Field(unique=True, max_length=255)

    user_id: str = Field(foreign_key="users.id", index=True)
    user: Optional[User] = Relationship(back_populates="accounts")


# ============================================================
# ORGANIZATION (tenant)
# ============================================================
class Organization(SQLModel, table=True):
    __tablename__ = "organizations"

    id: str = Field(default_factory=_new_id, primary_key=True, max_length=36)
    name: str = Field(max_length=100)
    slug: str = Field(unique=True, index=True, max_length=120)
    domain: Optional[str] = Field(default=None, unique=True, max_length=255)
    should_attach_users_by_domain: bool = Field(default=False)
    avatar_url: Optional[str] = Field(default=None)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    owner_id: str = Field(foreign_key="users.id", index=True)
    owner: Optional[User] = Relationship(back_populates="owns_organizations")

    # Shutting an organization down removes everything scoped to it
    members: List["Member"] = Relationship(
        back_populates="organization",
        sa_relationship_kwargs={"cascade": "all, delete-orphan"},
    )
    projects: List["Project"] = Relationship(
        back_populates="organization",
        sa_relationship_kwargs={"cascade": "all, delete-orphan"},
    )
    invites: List["Invite"] = Relationship(
        back_populates="organization",
        sa_relationship_kwargs={"cascade": "all, delete-orphan"},
    )


class Member(SQLModel, table=True):
    __tablename__ = "members"
    __table_args__ = (UniqueConstraint("organization_id", "user_id", name="uq_member_org_user"),)

    id: str = Field(default_factory=_new_id, primary_key=True, max_length=36)
    role: str = Field(default=Role.MEMBER.value, max_length=20, index=True)

    organization_id: str = Field(foreign_key="organizations.id", index=True)
    user_id: str = Field(foreign_key="users.id", index=True)

    organization: Optional[Organization] = Relationship(back_populates="members")
    user: Optional[User] = Relationship(back_populates="member_on")


class Invite(SQLModel, table=True):
    __tablename__ = "invites"
    __table_args__ = (UniqueConstraint("email", "organization_id", name="uq_invite_email_org"),)

    id: str = Field(default_factory=_new_id, primary_key=True, max_length=36)
    email: str = Field(index=True, max_length=255)
    role: str = Field(default=Role.MEMBER.value, max_length=20)
    created_at: datetime = Field(default_factory=datetime.utcnow)

    author_id: Optional[str] = Field(default=None, foreign_key="users.id", index=True)
    organization_id: str = Field(foreign_key="organizations.id", index=True)

    author: Optional[User] = Relationship(back_populates="invites")
    organization: Optional[Organization] = Relationship(back_populates="invites")


class Project(SQLModel, table=True):
    __tablename__ = "projects"
    __table_args__ = (UniqueConstraint("organization_id", "slug", name="uq_project_org_slug"),)

    id: str = Field(default_factory=_new_id, primary_key=True, max_length=36)
    name: str = Field(max_length=100)
    description: str = Field(default="", max_length=1000)
    slug: str = Field(index=True, max_length=120)
    avatar_url: Optional[str] = Field(default=None)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    organization_id: str = Field(foreign_key="organizations.id", index=True)
    owner_id: str = Field(foreign_key="users.id", index=True)

    organization: Optional[Organization] = Relationship(back_populates="projects")
    owner: Optional[User] = Relationship(back_populates="owns_projects")


__all__ = [
    "User",
    "Token",
    "Account",
    "Organization",
    "Member",
    "Invite",
    "Project",
    "Role",
    "TokenType",
    "AccountProvider",
]

import os
from dataclasses import dataclass
from typing import Dict, Optional

# Settings are read at import time
os.environ.setdefault("JWT_SECRET", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("FRONTEND_URL", "http://localhost:3000")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from core.database import get_session
from core.security import create_access_token, hash_password
from main import app
from models.models import Member, Organization, Project, Role, User

PASSWORD = "123456"


def auth_header(user: User) -> Dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


@dataclass
class OrgContext:
    organization: Organization
    admin: User
    member: User
    billing: User
    outsider: User

    def header(self, role: str) -> Dict[str, str]:
        return auth_header(getattr(self, role))


@pytest.fixture(name="session")
def session_fixture():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        yield session
    SQLModel.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture(name="client")
def client_fixture(session: Session):
    def get_session_override():
        return session

    app.dependency_overrides[get_session] = get_session_override
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(session: Session):
    def _make_user(email: str, name: Optional[str] = "John Doe", password: Optional[str] = PASSWORD) -> User:
        user = User(
            name=name,
            email=email,
            password_hash=hash_password(password) if password else None,
        )
        session.add(user)
        session.commit()
        session.refresh(user)
        return user

    return _make_user


@pytest.fixture
def make_organization(session: Session):
    def _make_organization(
        owner: User,
        name: str = "Acme Inc",
        slug: str = "acme-inc",
        domain: Optional[str] = None,
        should_attach_users_by_domain: bool = False,
    ) -> Organization:
        organization = Organization(
            name=name,
            slug=slug,
            domain=domain,
            should_attach_users_by_domain=should_attach_users_by_domain,
            owner_id=owner.id,
        )
        session.add(organization)
        session.flush()
        session.add(Member(organization_id=organization.id, user_id=owner.id, role=Role.ADMIN.value))
        session.commit()
        session.refresh(organization)
        return organization

    return _make_organization


@pytest.fixture
def add_member(session: Session):
    def _add_member(organization: Organization, user: User, role: Role) -> Member:
        member = Member(organization_id=organization.id, user_id=user.id, role=role.value)
        session.add(member)
        session.commit()
        session.refresh(member)
        return member

    return _add_member


@pytest.fixture
def add_project(session: Session):
    def _add_project(organization: Organization, owner: User, name: str, slug: str) -> Project:
        project = Project(name=name, slug=slug, description="", organization_id=organization.id, owner_id=owner.id)
        session.add(project)
        session.commit()
        session.refresh(project)
        return project

    return _add_project


@pytest.fixture
def acme(make_user, make_organization, add_member) -> OrgContext:
    """An organization with one user per role plus a user from outside it."""
    admin = make_user("john@acme.com", name="John Doe")
    member = make_user("jane@acme.com", name="Jane Member")
    billing = make_user("bill@acme.com", name="Bill Ing")
    outsider = make_user("eve@other.com", name="Eve Outsider")

    organization = make_organization(admin, domain="acme.com")
    add_member(organization, member, Role.MEMBER)
    add_member(organization, billing, Role.BILLING)

    return OrgContext(
        organization=organization,
        admin=admin,
        member=member,
        billing=billing,
        outsider=outsider,
    )

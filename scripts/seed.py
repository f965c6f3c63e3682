# scripts/seed.py

import os
import sys

from dotenv import load_dotenv

# Ensure root path for relative imports
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# ✅ Load environment variables before settings are read
load_dotenv()

from sqlmodel import Session, select  # noqa: E402

from core.database import create_db_and_tables, engine  # noqa: E402
from core.security import hash_password  # noqa: E402
from core.utils import create_slug  # noqa: E402
from models.models import Member, Organization, Project, Role, User  # noqa: E402

DEMO_PASSWORD = "123456"

DEMO_USERS = [
    ("John Doe", "john@acme.com", Role.ADMIN),
    ("Jane Member", "jane@acme.com", Role.MEMBER),
    ("Bill Ing", "billing@acme.com", Role.BILLING),
]


def _get_or_create_user(session: Session, name: str, email: str) -> User:
    user = session.exec(select(User).where(User.email == email)).first()
    if not user:
        user = User(name=name, email=email, password_hash=hash_password(DEMO_PASSWORD))
        session.add(user)
        session.flush()
        print(f"✅ Added user {email}")
    return user


def seed_dev_data():
    """Seed development database with a demo organization, one user per role and a project."""
    print("🌱 Seeding development data...")
    create_db_and_tables()

    with Session(engine) as session:
        users = {role: _get_or_create_user(session, name, email) for name, email, role in DEMO_USERS}
        owner = users[Role.ADMIN]

        # -----------------------------
        # 🏢 Demo Organization
        # -----------------------------
        org = session.exec(select(Organization).where(Organization.slug == "acme-inc")).first()
        if not org:
            org = Organization(
                name="Acme Inc",
                slug="acme-inc",
                domain="acme.com",
                should_attach_users_by_domain=True,
                owner_id=owner.id,
            )
            session.add(org)
            session.flush()
            print("✅ Created Acme Inc")

        # -----------------------------
        # 👥 Memberships
        # -----------------------------
        for role, user in users.items():
            existing = session.exec(
                select(Member).where(Member.organization_id == org.id, Member.user_id == user.id)
            ).first()
            if not existing:
                session.add(Member(organization_id=org.id, user_id=user.id, role=role.value))

        # -----------------------------
        # 📁 Demo Project
        # -----------------------------
        project_name = "Website Redesign"
        project = session.exec(
            select(Project).where(Project.organization_id == org.id, Project.slug == create_slug(project_name))
        ).first()
        if not project:
            session.add(
                Project(
                    name=project_name,
                    description="Refresh the marketing site.",
                    slug=create_slug(project_name),
                    organization_id=org.id,
                    owner_id=users[Role.MEMBER].id,
                )
            )

        session.commit()

    print(f"🎉 Seed complete. Every demo user signs in with password '{DEMO_PASSWORD}'.")


if __name__ == "__main__":
    seed_dev_data()

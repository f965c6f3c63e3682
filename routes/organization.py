# routes/organization.py
import logging
from datetime import datetime
from typing import Optional, Tuple

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from core.database import get_session
from core.errors import BadRequestError, UnauthorizedError
from core.permissions import AuthOrganization, get_user_permissions
from core.security import get_current_user_id, get_user_membership
from core.utils import create_slug
from models.models import Member, Organization, Role
from schemas.organization_schema import (
    MembershipRead,
    MembershipResponse,
    OrganizationCreate,
    OrganizationCreated,
    OrganizationList,
    OrganizationRead,
    OrganizationResponse,
    OrganizationUpdate,
    OrganizationWithRole,
    TransferOwnership,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/organizations", tags=["Organizations"])


def _domain_taken(session: Session, domain: Optional[str], exclude_id: Optional[str] = None) -> bool:
    if not domain:
        return False
    query = select(Organization).where(Organization.domain == domain)
    if exclude_id:
        query = query.where(Organization.id != exclude_id)
    return session.exec(query).first() is not None


# ==================================================================
#  ✅ CREATE ORGANIZATION
# ==================================================================
@router.post("", response_model=OrganizationCreated, status_code=status.HTTP_201_CREATED)
def create_organization(
    data: OrganizationCreate,
    user_id: str = Depends(get_current_user_id),
    session: Session = Depends(get_session),
):
    """Create an organization owned by the caller, who joins it as ADMIN."""
    if _domain_taken(session, data.domain):
        raise BadRequestError("Another organization with same domain already exists.")

    slug = create_slug(data.name)
    if not slug:
        raise BadRequestError("Organization name must contain letters or digits.")
    if session.exec(select(Organization).where(Organization.slug == slug)).first():
        raise BadRequestError("Another organization with same slug already exists.")

    try:
        organization = Organization(
            name=data.name,
            slug=slug,
            domain=data.domain,
            should_attach_users_by_domain=data.should_attach_users_by_domain,
            owner_id=user_id,
        )
        session.add(organization)
        session.flush()

        session.add(Member(user_id=user_id, organization_id=organization.id, role=Role.ADMIN.value))
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.exception("Failed to create organization %s: %s", slug, e)
        raise

    logger.info("Organization %s created by %s", slug, user_id)
    return OrganizationCreated(organization_id=organization.id)


# ==================================================================
#  ✅ LIST MY ORGANIZATIONS
# ==================================================================
@router.get("", response_model=OrganizationList)
def get_organizations(
    user_id: str = Depends(get_current_user_id),
    session: Session = Depends(get_session),
):
    rows = session.exec(
        select(Organization, Member)
        .join(Member, Member.organization_id == Organization.id)
        .where(Member.user_id == user_id)
        .order_by(Organization.created_at)
    ).all()

    return OrganizationList(
        organizations=[
            OrganizationWithRole(
                id=organization.id,
                name=organization.name,
                slug=organization.slug,
                avatar_url=organization.avatar_url,
                role=membership.role,
            )
            for organization, membership in rows
        ]
    )


# ==================================================================
#  ✅ GET MEMBERSHIP / ORGANIZATION
# ==================================================================
@router.get("/{slug}/membership", response_model=MembershipResponse)
def get_membership(membership: Tuple[Organization, Member] = Depends(get_user_membership)):
    _, member = membership
    return MembershipResponse(membership=MembershipRead.model_validate(member))


@router.get("/{slug}", response_model=OrganizationResponse)
def get_organization(membership: Tuple[Organization, Member] = Depends(get_user_membership)):
    organization, _ = membership
    return OrganizationResponse(organization=OrganizationRead.model_validate(organization))


# ==================================================================
#  ✅ UPDATE ORGANIZATION
# ==================================================================
@router.put("/{slug}", status_code=status.HTTP_204_NO_CONTENT)
def update_organization(
    data: OrganizationUpdate,
    user_id: str = Depends(get_current_user_id),
    membership: Tuple[Organization, Member] = Depends(get_user_membership),
    session: Session = Depends(get_session),
):
    organization, member = membership

    auth_organization = AuthOrganization.model_validate(organization)
    if get_user_permissions(user_id, member.role).cannot("update", auth_organization):
        raise UnauthorizedError("You're not allowed to update this organization.")

    if _domain_taken(session, data.domain, exclude_id=organization.id):
        raise BadRequestError("Another organization with same domain already exists.")

    organization.name = data.name
    organization.domain = data.domain
    organization.should_attach_users_by_domain = data.should_attach_users_by_domain
    organization.updated_at = datetime.utcnow()

    session.add(organization)
    session.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ==================================================================
#  ✅ SHUTDOWN ORGANIZATION
# ==================================================================
@router.delete("/{slug}", status_code=status.HTTP_204_NO_CONTENT)
def shutdown_organization(
    user_id: str = Depends(get_current_user_id),
    membership: Tuple[Organization, Member] = Depends(get_user_membership),
    session: Session = Depends(get_session),
):
    organization, member = membership

    auth_organization = AuthOrganization.model_validate(organization)
    if get_user_permissions(user_id, member.role).cannot("delete", auth_organization):
        raise UnauthorizedError("You're not allowed to shutdown this organization.")

    try:
        session.delete(organization)
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.exception("Failed to shutdown organization %s: %s", organization.slug, e)
        raise

    logger.info("Organization %s shut down by %s", organization.slug, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ==================================================================
#  ✅ TRANSFER OWNERSHIP
# ==================================================================
@router.patch("/{slug}/owner", status_code=status.HTTP_204_NO_CONTENT)
def transfer_organization(
    data: TransferOwnership,
    user_id: str = Depends(get_current_user_id),
    membership: Tuple[Organization, Member] = Depends(get_user_membership),
    session: Session = Depends(get_session),
):
    organization, member = membership

    auth_organization = AuthOrganization.model_validate(organization)
    if get_user_permissions(user_id, member.role).cannot("transfer_ownership", auth_organization):
        raise UnauthorizedError("You're not allowed to transfer this organization ownership.")

    transfer_to = session.exec(
        select(Member).where(
            Member.organization_id == organization.id,
            Member.user_id == data.transfer_to_user_id,
        )
    ).first()
    if not transfer_to:
        raise BadRequestError("Target user is not a member of this organization.")

    try:
        transfer_to.role = Role.ADMIN.value
        organization.owner_id = data.transfer_to_user_id
        organization.updated_at = datetime.utcnow()
        session.add(transfer_to)
        session.add(organization)
        session.commit()
    except SQLAlchemyError:
        session.rollback()
        raise

    return Response(status_code=status.HTTP_204_NO_CONTENT)

# routes/members.py
import logging
from typing import Tuple

from fastapi import APIRouter, Depends, Response, status
from sqlmodel import Session, select

from core.database import get_session
from core.errors import BadRequestError, UnauthorizedError
from core.permissions import get_user_permissions
from core.security import get_current_user_id, get_user_membership
from models.models import Member, Organization, User
from schemas.member_schema import MemberList, MemberRead, MemberUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/organizations/{slug}/members", tags=["Members"])


def _get_org_member(session: Session, organization_id: str, member_id: str) -> Member:
    member = session.exec(
        select(Member).where(Member.id == member_id, Member.organization_id == organization_id)
    ).first()
    if not member:
        raise BadRequestError("Member not found.")
    return member


# ==================================================================
#  ✅ LIST MEMBERS
# ==================================================================
@router.get("", response_model=MemberList)
def get_members(
    user_id: str = Depends(get_current_user_id),
    membership: Tuple[Organization, Member] = Depends(get_user_membership),
    session: Session = Depends(get_session),
):
    organization, member = membership

    if get_user_permissions(user_id, member.role).cannot("get", "User"):
        raise UnauthorizedError("You're not allowed to see organization members.")

    rows = session.exec(
        select(Member, User)
        .join(User, User.id == Member.user_id)
        .where(Member.organization_id == organization.id)
        .order_by(Member.role)
    ).all()

    return MemberList(
        members=[
            MemberRead(
                id=org_member.id,
                user_id=user.id,
                role=org_member.role,
                name=user.name,
                email=user.email,
                avatar_url=user.avatar_url,
            )
            for org_member, user in rows
        ]
    )


# ==================================================================
#  ✅ UPDATE MEMBER ROLE
# ==================================================================
@router.put("/{member_id}", status_code=status.HTTP_204_NO_CONTENT)
def update_member(
    member_id: str,
    data: MemberUpdate,
    user_id: str = Depends(get_current_user_id),
    membership: Tuple[Organization, Member] = Depends(get_user_membership),
    session: Session = Depends(get_session),
):
    organization, member = membership

    if get_user_permissions(user_id, member.role).cannot("update", "User"):
        raise UnauthorizedError("You're not allowed to update this member.")

    target = _get_org_member(session, organization.id, member_id)
    target.role = data.role.value

    session.add(target)
    session.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ==================================================================
#  ✅ REMOVE MEMBER
# ==================================================================
@router.delete("/{member_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_member(
    member_id: str,
    user_id: str = Depends(get_current_user_id),
    membership: Tuple[Organization, Member] = Depends(get_user_membership),
    session: Session = Depends(get_session),
):
    organization, member = membership

    if get_user_permissions(user_id, member.role).cannot("delete", "User"):
        raise UnauthorizedError("You're not allowed to remove this member from organization.")

    target = _get_org_member(session, organization.id, member_id)
    if target.user_id == organization.owner_id:
        raise BadRequestError("The organization owner cannot be removed. Transfer ownership first.")

    session.delete(target)
    session.commit()
    logger.info("Member %s removed from %s by %s", member_id, organization.slug, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

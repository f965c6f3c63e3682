# routes/invitation.py
import logging
from typing import Tuple

from fastapi import APIRouter, BackgroundTasks, Depends, Response, status
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import selectinload
from sqlmodel import Session, select

from core.config import settings
from core.database import get_session
from core.errors import BadRequestError, UnauthorizedError
from core.permissions import get_user_permissions
from core.security import get_current_user_id, get_user_membership
from core.utils import email_domain
from models.models import Invite, Member, Organization, User
from schemas.invitation_schema import (
    InviteCreate,
    InviteCreated,
    InviteDetail,
    InviteList,
    InviteRead,
    InviteResponse,
    PendingInviteList,
)
from services.email_service import EmailService, get_email_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Invites"])


# -----------------------
# Helper: build invite link
# -----------------------
def _build_invite_link(invite_id: str) -> str:
    return f"{settings.FRONTEND_URL.rstrip('/')}/invite/{invite_id}"


# -----------------------
# Helper: load invite addressed to the caller
# -----------------------
def _get_invite_for_user(session: Session, invite_id: str, user_id: str) -> Tuple[Invite, User]:
    invite = session.get(Invite, invite_id)
    if not invite:
        raise BadRequestError("Invite not found or expired.")

    user = session.get(User, user_id)
    if not user:
        raise BadRequestError("User not found.")

    if invite.email.lower() != user.email.lower():
        raise BadRequestError("This invite belongs to another user.")

    return invite, user


# ==================================================================
# Create / Send Invite
# ==================================================================
@router.post(
    "/organizations/{slug}/invites",
    response_model=InviteCreated,
    status_code=status.HTTP_201_CREATED,
)
def create_invite(
    invite: InviteCreate,
    background_tasks: BackgroundTasks,
    user_id: str = Depends(get_current_user_id),
    membership: Tuple[Organization, Member] = Depends(get_user_membership),
    session: Session = Depends(get_session),
    mailer: EmailService = Depends(get_email_service),
):
    """
    Create an invite for the caller's organization and e-mail it in the background.
    """
    organization, member = membership

    if get_user_permissions(user_id, member.role).cannot("create", "Invite"):
        raise UnauthorizedError("You're not allowed to create new invites.")

    domain = email_domain(invite.email)
    if organization.should_attach_users_by_domain and domain == organization.domain:
        raise BadRequestError(
            f"Users with '{domain}' domain will join your organization automatically on login."
        )

    existing_invite = session.exec(
        select(Invite).where(Invite.email == invite.email, Invite.organization_id == organization.id)
    ).first()
    if existing_invite:
        raise BadRequestError("Another invite with same e-mail already exists.")

    existing_member = session.exec(
        select(Member)
        .join(User, User.id == Member.user_id)
        .where(Member.organization_id == organization.id, User.email == invite.email)
    ).first()
    if existing_member:
        raise BadRequestError("A member with this e-mail already belongs to your organization.")

    try:
        record = Invite(
            email=invite.email,
            role=invite.role.value,
            organization_id=organization.id,
            author_id=user_id,
        )
        session.add(record)
        session.commit()
        session.refresh(record)
    except IntegrityError:
        session.rollback()
        raise BadRequestError("Another invite with same e-mail already exists.")
    except SQLAlchemyError as e:
        session.rollback()
        logger.exception("Database error while saving invite for %s: %s", invite.email, e)
        raise

    author = session.get(User, user_id)
    background_tasks.add_task(
        mailer.send_invite_email,
        record.email,
        _build_invite_link(record.id),
        record.role,
        organization.name,
        (author.name or author.email) if author else "Admin",
    )
    logger.info("Invite email scheduled for %s", record.email)

    return InviteCreated(invite_id=record.id)


# ==================================================================
# List / Revoke organization invites
# ==================================================================
@router.get("/organizations/{slug}/invites", response_model=InviteList)
def get_invites(
    user_id: str = Depends(get_current_user_id),
    membership: Tuple[Organization, Member] = Depends(get_user_membership),
    session: Session = Depends(get_session),
):
    organization, member = membership

    if get_user_permissions(user_id, member.role).cannot("get", "Invite"):
        raise UnauthorizedError("You're not allowed to get organization invites.")

    invites = session.exec(
        select(Invite)
        .where(Invite.organization_id == organization.id)
        .options(selectinload(Invite.author))
        .order_by(Invite.created_at.desc())
    ).all()

    return InviteList(invites=[InviteRead.model_validate(invite) for invite in invites])


@router.delete("/organizations/{slug}/invites/{invite_id}", status_code=status.HTTP_204_NO_CONTENT)
def revoke_invite(
    invite_id: str,
    user_id: str = Depends(get_current_user_id),
    membership: Tuple[Organization, Member] = Depends(get_user_membership),
    session: Session = Depends(get_session),
):
    organization, member = membership

    if get_user_permissions(user_id, member.role).cannot("delete", "Invite"):
        raise UnauthorizedError("You're not allowed to delete an invite.")

    invite = session.exec(
        select(Invite).where(Invite.id == invite_id, Invite.organization_id == organization.id)
    ).first()
    if not invite:
        raise BadRequestError("Invite not found.")

    session.delete(invite)
    session.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ==================================================================
# Public invite details
# ==================================================================
@router.get("/invites/{invite_id}", response_model=InviteResponse)
def get_invite(invite_id: str, session: Session = Depends(get_session)):
    invite = session.exec(
        select(Invite)
        .where(Invite.id == invite_id)
        .options(selectinload(Invite.author), selectinload(Invite.organization))
    ).first()
    if not invite:
        raise BadRequestError("Invite not found.")

    return InviteResponse(invite=InviteDetail.model_validate(invite))


# ==================================================================
# Accept / Reject invite
# ==================================================================
@router.post("/invites/{invite_id}/accept", status_code=status.HTTP_204_NO_CONTENT)
def accept_invite(
    invite_id: str,
    user_id: str = Depends(get_current_user_id),
    session: Session = Depends(get_session),
):
    invite, user = _get_invite_for_user(session, invite_id, user_id)

    already_member = session.exec(
        select(Member).where(Member.organization_id == invite.organization_id, Member.user_id == user.id)
    ).first()
    if already_member:
        raise BadRequestError("You're already a member of this organization.")

    # Membership creation and invite removal commit together
    try:
        session.add(Member(user_id=user.id, organization_id=invite.organization_id, role=invite.role))
        session.delete(invite)
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.exception("Failed to accept invite %s for %s: %s", invite_id, user.email, e)
        raise

    logger.info("Invite %s accepted by %s", invite_id, user.email)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/invites/{invite_id}/reject", status_code=status.HTTP_204_NO_CONTENT)
def reject_invite(
    invite_id: str,
    user_id: str = Depends(get_current_user_id),
    session: Session = Depends(get_session),
):
    invite, user = _get_invite_for_user(session, invite_id, user_id)

    session.delete(invite)
    session.commit()
    logger.info("Invite %s rejected by %s", invite_id, user.email)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ==================================================================
# Pending invites for the caller
# ==================================================================
@router.get("/pending-invites", response_model=PendingInviteList)
def get_pending_invites(
    user_id: str = Depends(get_current_user_id),
    session: Session = Depends(get_session),
):
    user = session.get(User, user_id)
    if not user:
        raise BadRequestError("User not found.")

    invites = session.exec(
        select(Invite)
        .where(Invite.email == user.email.lower())
        .options(selectinload(Invite.author), selectinload(Invite.organization))
        .order_by(Invite.created_at.desc())
    ).all()

    return PendingInviteList(invites=[InviteDetail.model_validate(invite) for invite in invites])

# routes/billing.py
from typing import Tuple

from fastapi import APIRouter, Depends
from sqlmodel import Session

from core.database import get_session
from core.errors import UnauthorizedError
from core.permissions import get_user_permissions
from core.security import get_current_user_id, get_user_membership
from models.models import Member, Organization
from schemas.billing_schema import BillingResponse
from services.billing_service import get_organization_billing

router = APIRouter(tags=["Billing"])


# ==================================================================
#  ✅ Organization billing summary
# ==================================================================
@router.get("/organizations/{slug}/billing", response_model=BillingResponse)
def get_billing(
    user_id: str = Depends(get_current_user_id),
    membership: Tuple[Organization, Member] = Depends(get_user_membership),
    session: Session = Depends(get_session),
):
    """Get billing details of an organization"""
    organization, member = membership

    if get_user_permissions(user_id, member.role).cannot("get", "Billing"):
        raise UnauthorizedError("You don't have access to this resource")

    return BillingResponse(billing=get_organization_billing(session, organization.id))

from .billing_schema import Billing, BillingLine, BillingResponse
from .invitation_schema import (
    InviteCreate, InviteCreated, InviteOrganization,
    InviteRead, InviteDetail, InviteResponse, InviteList, PendingInviteList,
)
from .member_schema import MemberRead, MemberList, MemberUpdate
from .organization_schema import (
    OrganizationCreate, OrganizationUpdate, OrganizationCreated,
    OrganizationRead, OrganizationResponse, OrganizationWithRole, OrganizationList,
    TransferOwnership, MembershipRead, MembershipResponse,
)
from .project_schema import ProjectCreate, ProjectUpdate, ProjectCreated, ProjectRead, ProjectResponse, ProjectList
from .user_schema import (
    UserCreate, PasswordLogin, GithubLogin, TokenResponse,
    PasswordRecoverRequest, PasswordReset,
    UserRead, ProfileResponse, UserSummary,
)

__all__ = [
    # Billing
    "Billing", "BillingLine", "BillingResponse",

    # Invite
    "InviteCreate", "InviteCreated", "InviteOrganization",
    "InviteRead", "InviteDetail", "InviteResponse", "InviteList", "PendingInviteList",

    # Member
    "MemberRead", "MemberList", "MemberUpdate",

    # Organization
    "OrganizationCreate", "OrganizationUpdate", "OrganizationCreated",
    "OrganizationRead", "OrganizationResponse", "OrganizationWithRole", "OrganizationList",
    "TransferOwnership", "MembershipRead", "MembershipResponse",

    # Project
    "ProjectCreate", "ProjectUpdate", "ProjectCreated", "ProjectRead", "ProjectResponse", "ProjectList",

    # User
    "UserCreate", "PasswordLogin", "GithubLogin", "TokenResponse",
    "PasswordRecoverRequest", "PasswordReset",
    "UserRead", "ProfileResponse", "UserSummary",
]

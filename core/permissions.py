"""
Role-based permission model.

Each membership role maps to a small set of rules built with ``AbilityBuilder``.
An ``Ability`` answers questions like "can this MEMBER get Billing?" either for
a whole subject type (``"Project"``) or for a concrete instance (a project with
an ``owner_id``), in which case rule conditions are checked against the
instance attributes.
"""
from dataclasses import dataclass
from typing import Any, Callable, ClassVar, Dict, FrozenSet, Iterable, List, Optional, Union

from pydantic import BaseModel, ConfigDict, ValidationError

from models.models import Role


# ============================================================
# ACTIONS & SUBJECTS
# ============================================================
MANAGE = "manage"
ALL = "all"

SUBJECT_ACTIONS: Dict[str, FrozenSet[str]] = {
    "User": frozenset({"manage", "get", "update", "delete"}),
    "Project": frozenset({"manage", "get", "create", "update", "delete"}),
    "Organization": frozenset({"manage", "update", "delete", "transfer_ownership"}),
    "Invite": frozenset({"manage", "get", "create", "delete"}),
    "Billing": frozenset({"manage", "get", "export"}),
    ALL: frozenset({"manage"}),
}


# ============================================================
# SUBJECT MODELS
# ============================================================
class AuthUser(BaseModel):
    subject_type: ClassVar[str] = "User"
    model_config = ConfigDict(from_attributes=True)

    id: str
    role: Role


class AuthProject(BaseModel):
    subject_type: ClassVar[str] = "Project"
    model_config = ConfigDict(from_attributes=True)

    id: str
    owner_id: str


class AuthOrganization(BaseModel):
    subject_type: ClassVar[str] = "Organization"
    model_config = ConfigDict(from_attributes=True)

    id: str
    owner_id: str


Subject = Union[str, AuthUser, AuthProject, AuthOrganization, Any]


def detect_subject_type(subject: Subject) -> str:
    if isinstance(subject, str):
        return subject
    return getattr(type(subject), "subject_type", type(subject).__name__)


def _as_set(value: Union[str, Iterable[str]]) -> FrozenSet[str]:
    if isinstance(value, str):
        return frozenset({value})
    return frozenset(value)


# ============================================================
# RULES
# ============================================================
@dataclass(frozen=True)
class Rule:
    actions: FrozenSet[str]
    subjects: FrozenSet[str]
    conditions: Optional[Dict[str, Any]] = None
    inverted: bool = False

    def matches_action(self, action: str) -> bool:
        return MANAGE in self.actions or action in self.actions

    def matches_subject_type(self, subject_type: str) -> bool:
        return ALL in self.subjects or subject_type in self.subjects

    def matches_conditions(self, subject: Subject) -> bool:
        if not self.conditions:
            return True
        # A type-level question can be satisfied by some instance, but a
        # conditional restriction never applies to the type as a whole.
        if isinstance(subject, str):
            return not self.inverted
        return all(
            getattr(subject, field, None) == expected
            for field, expected in self.conditions.items()
        )


class Ability:
    def __init__(self, rules: Iterable[Rule]):
        self.rules: List[Rule] = list(rules)

    def can(self, action: str, subject: Subject) -> bool:
        subject_type = detect_subject_type(subject)
        _check_pair(action, subject_type)

        # Later rules take precedence over earlier ones
        for rule in reversed(self.rules):
            if (
                rule.matches_action(action)
                and rule.matches_subject_type(subject_type)
                and rule.matches_conditions(subject)
            ):
                return not rule.inverted
        return False

    def cannot(self, action: str, subject: Subject) -> bool:
        return not self.can(action, subject)


def _check_pair(action: str, subject_type: str) -> None:
    allowed = SUBJECT_ACTIONS.get(subject_type)
    if allowed is None:
        raise ValueError(f"Unknown permission subject '{subject_type}'.")
    if action not in allowed:
        raise ValueError(f"Action '{action}' is not defined for subject '{subject_type}'.")


class AbilityBuilder:
    def __init__(self):
        self.rules: List[Rule] = []

    def can(self, action, subject, conditions: Optional[Dict[str, Any]] = None) -> None:
        self.rules.append(Rule(_as_set(action), _as_set(subject), conditions))

    def cannot(self, action, subject, conditions: Optional[Dict[str, Any]] = None) -> None:
        self.rules.append(Rule(_as_set(action), _as_set(subject), conditions, inverted=True))

    def build(self) -> Ability:
        return Ability(self.rules)


# ============================================================
# ROLE PERMISSIONS
# ============================================================
def _admin_permissions(user: AuthUser, builder: AbilityBuilder) -> None:
    builder.can(MANAGE, ALL)
    builder.cannot(["transfer_ownership", "update"], "Organization")
    builder.can(["transfer_ownership", "update"], "Organization", {"owner_id": user.id})


def _member_permissions(user: AuthUser, builder: AbilityBuilder) -> None:
    builder.can("get", "User")
    builder.can(["create", "get"], "Project")
    builder.can(["update", "delete"], "Project", {"owner_id": user.id})


def _billing_permissions(user: AuthUser, builder: AbilityBuilder) -> None:
    builder.can(MANAGE, "Billing")


PERMISSIONS: Dict[Role, Callable[[AuthUser, AbilityBuilder], None]] = {
    Role.ADMIN: _admin_permissions,
    Role.MEMBER: _member_permissions,
    Role.BILLING: _billing_permissions,
}


def define_ability_for(user: AuthUser) -> Ability:
    permissions = PERMISSIONS.get(user.role)
    if permissions is None:
        raise ValueError(f"Permissions for role {user.role} not found.")

    builder = AbilityBuilder()
    permissions(user, builder)
    return builder.build()


def get_user_permissions(user_id: str, role: Union[Role, str]) -> Ability:
    try:
        auth_user = AuthUser(id=user_id, role=role)
    except ValidationError:
        raise ValueError(f"Permissions for role {role} not found.")
    return define_ability_for(auth_user)

"""
Access facts: the immutable inputs of a ticket access decision.

WHAT: Value objects describing a ticket (its tenant, participants, owning
and sharing departments) and the caller's effective roles, plus the
abstract lookup that produces them.

WHY: The authorization logic only ever consumes these values. How they are
fetched (one joined query, several parallel calls, an in-memory fake) is
the lookup's business, so the rules can be unit-tested without a database.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, Optional

from ticketdesk.core.principal import PrincipalContext
from ticketdesk.models.membership import (
    OrganizationRoleName,
    DepartmentRoleName,
    ProjectRoleName,
)


@dataclass(frozen=True)
class TicketFacts:
    """
    What the resolver needs to know about one ticket.

    Fields:
    - ticket_id / project_id: The ticket and its project
    - project_org_id: Tenant that owns the project (and so the ticket)
    - created_by_user_id / assigned_to_user_id: Direct participants
    - owning_department_id: Department owning the project, if any
    - shared_department_ids: Departments the project is shared with
    """

    ticket_id: int
    project_id: int
    project_org_id: int
    created_by_user_id: int
    assigned_to_user_id: Optional[int] = None
    owning_department_id: Optional[int] = None
    shared_department_ids: FrozenSet[int] = field(default_factory=frozenset)


@dataclass(frozen=True)
class EffectiveAccess:
    """
    The caller's roles, resolved once per request.

    Fields:
    - organization_role: Role in the caller's organization
    - department_roles: (department_id, role) pairs in that organization
    - project_role: Role on the ticket's project
    """

    organization_role: Optional[OrganizationRoleName] = None
    department_roles: FrozenSet[tuple] = field(default_factory=frozenset)
    project_role: Optional[ProjectRoleName] = None

    @property
    def is_org_admin(self) -> bool:
        return self.organization_role is OrganizationRoleName.ADMIN

    @property
    def department_ids(self) -> FrozenSet[int]:
        """Departments the caller belongs to, in any role."""
        return frozenset(department_id for department_id, _ in self.department_roles)

    def department_role(self, department_id: int) -> Optional[DepartmentRoleName]:
        for member_department_id, role in self.department_roles:
            if member_department_id == department_id:
                return role
        return None


@dataclass(frozen=True)
class AccessFacts:
    """Everything one access decision consumes."""

    ticket: TicketFacts
    access: EffectiveAccess


class AccessDecision(str, Enum):
    """Verdict of an access check."""

    ALLOW = "allow"
    DENY = "deny"


class AccessGrant(str, Enum):
    """
    The rule that decided an access check.

    WHY: Callers render a deny differently depending on why it happened:
    tickets that are missing or belong to another tenant look "not found",
    known tickets without a matching rule look "forbidden".
    """

    ORG_ADMIN = "org_admin"
    DIRECT_PARTICIPANT = "direct_participant"
    DEPARTMENT_OWNER = "department_owner"
    DEPARTMENT_SHARED = "department_shared"
    PROJECT_ROLE = "project_role"

    INVALID_REQUEST = "invalid_request"
    NOT_FOUND = "not_found"
    LOOKUP_FAILED = "lookup_failed"
    TENANT_MISMATCH = "tenant_mismatch"
    NO_MATCHING_ROLE = "no_matching_role"

    @property
    def allowed(self) -> bool:
        return self in _ALLOWING_GRANTS

    @property
    def hides_existence(self) -> bool:
        """True when a deny must be reported as "not found"."""
        return not self.allowed and self is not AccessGrant.NO_MATCHING_ROLE

    @property
    def decision(self) -> AccessDecision:
        return AccessDecision.ALLOW if self.allowed else AccessDecision.DENY


_ALLOWING_GRANTS = frozenset(
    {
        AccessGrant.ORG_ADMIN,
        AccessGrant.DIRECT_PARTICIPANT,
        AccessGrant.DEPARTMENT_OWNER,
        AccessGrant.DEPARTMENT_SHARED,
        AccessGrant.PROJECT_ROLE,
    }
)


class AccessFactsLookup(ABC):
    """
    Read-only source of access facts.

    Implementations: ticketdesk.dao.access.AccessFactsDAO (SQL) and the
    in-memory fake used by the resolver tests.
    """

    @abstractmethod
    async def load_access_facts(
        self,
        principal: PrincipalContext,
        ticket_id: int,
    ) -> Optional[AccessFacts]:
        """
        Load the facts for one (principal, ticket) pair.

        Returns:
            AccessFacts, or None when the ticket or its project does not exist
        """
        raise NotImplementedError

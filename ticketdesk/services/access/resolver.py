"""
Ticket access resolver.

WHAT: Decides whether a principal may read and write the comments of a
ticket, and which rule granted or denied it.

WHY: Comment visibility is the tenant boundary of the ticketing system. The
rules are evaluated in a fixed order and the first match wins:

1. Tenant check: the ticket's project must belong to the caller's org
2. Organization Admin
3. Ticket creator or assignee
4. Member of the department that owns the project
5. Member of a department the project is shared with
6. Manager or Member (legacy: User) on the project
7. Otherwise deny

HOW: decide() is a pure function over AccessFacts. AccessResolver wraps it
with input validation and the facts lookup, and fails closed: malformed
input, a missing ticket, or a failing lookup all produce a deny.
"""

import logging
from typing import Any, Optional

from ticketdesk.core.principal import PrincipalContext
from ticketdesk.models.membership import OrganizationRoleName, ProjectRoleName
from ticketdesk.services.access.facts import (
    AccessDecision,
    AccessFacts,
    AccessFactsLookup,
    AccessGrant,
)

logger = logging.getLogger(__name__)

_PROJECT_ACCESS_ROLES = frozenset({ProjectRoleName.MANAGER, ProjectRoleName.MEMBER})


def parse_resource_id(value: Any) -> Optional[int]:
    """
    Parse an entity identifier from caller input.

    Accepts positive integers and strings of digits. Booleans, zero,
    negatives and anything else yield None.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value > 0 else None
    if isinstance(value, str):
        text = value.strip()
        if text.isdigit():
            parsed = int(text)
            return parsed if parsed > 0 else None
    return None


def decide(principal: PrincipalContext, facts: Optional[AccessFacts]) -> AccessGrant:
    """
    Apply the access rules to already-loaded facts.

    Args:
        principal: Authenticated caller
        facts: Ticket facts and caller roles, None if the ticket is unknown

    Returns:
        The grant naming the deciding rule
    """
    if not principal.is_complete:
        return AccessGrant.INVALID_REQUEST
    if facts is None:
        return AccessGrant.NOT_FOUND

    ticket = facts.ticket
    access = facts.access

    # No role in another tenant can cross this line, Admin included.
    if ticket.project_org_id != principal.organization_id:
        return AccessGrant.TENANT_MISMATCH

    if access.organization_role is OrganizationRoleName.ADMIN:
        return AccessGrant.ORG_ADMIN

    if principal.user_id in (ticket.created_by_user_id, ticket.assigned_to_user_id):
        return AccessGrant.DIRECT_PARTICIPANT

    member_of = access.department_ids
    if ticket.owning_department_id is not None and ticket.owning_department_id in member_of:
        return AccessGrant.DEPARTMENT_OWNER

    if ticket.shared_department_ids & member_of:
        return AccessGrant.DEPARTMENT_SHARED

    if access.project_role in _PROJECT_ACCESS_ROLES:
        return AccessGrant.PROJECT_ROLE

    return AccessGrant.NO_MATCHING_ROLE


class AccessResolver:
    """
    Resolves ticket access for a principal.

    Never raises: every failure path is a deny, logged with its reason.
    """

    def __init__(self, lookup: AccessFactsLookup):
        self.lookup = lookup

    async def evaluate(self, principal: Optional[PrincipalContext], ticket_id: Any) -> AccessGrant:
        """
        Evaluate access and report the deciding rule.

        Args:
            principal: Authenticated caller
            ticket_id: Ticket identifier (int or digit string)

        Returns:
            AccessGrant; check .allowed for the verdict
        """
        parsed_ticket_id = parse_resource_id(ticket_id)
        if principal is None or not principal.is_complete or parsed_ticket_id is None:
            logger.info(
                "Ticket access denied: invalid request",
                extra={"ticket_id": ticket_id},
            )
            return AccessGrant.INVALID_REQUEST

        try:
            facts = await self.lookup.load_access_facts(principal, parsed_ticket_id)
        except Exception:
            logger.exception(
                f"Access facts lookup failed for user {principal.user_id} "
                f"on ticket {parsed_ticket_id}"
            )
            return AccessGrant.LOOKUP_FAILED

        grant = decide(principal, facts)

        if grant.allowed:
            logger.debug(
                f"Ticket access granted: user {principal.user_id} "
                f"ticket {parsed_ticket_id} via {grant.value}"
            )
        else:
            logger.info(
                f"Ticket access denied: user {principal.user_id} "
                f"org {principal.organization_id} ticket {parsed_ticket_id} "
                f"({grant.value})"
            )
        return grant

    async def resolve(self, principal: Optional[PrincipalContext], ticket_id: Any) -> AccessDecision:
        """Evaluate access and return only the verdict."""
        grant = await self.evaluate(principal, ticket_id)
        return grant.decision

    async def can_access(self, principal: Optional[PrincipalContext], ticket_id: Any) -> bool:
        grant = await self.evaluate(principal, ticket_id)
        return grant.allowed

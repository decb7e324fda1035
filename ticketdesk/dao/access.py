"""
Access facts Data Access Object.

WHAT: Loads the ticket, project and role rows the access resolver needs.

WHY: Keeps every SQL query of the authorization path in one place:
1. Ticket joined with its project (tenant, owning department)
2. Departments the project is shared with
3. The caller's organization, department and project roles

Role names are parsed into enums here, once, so nothing downstream
compares raw strings.

HOW: Plain SELECTs on the request's AsyncSession. All reads, no writes.
"""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ticketdesk.core.principal import PrincipalContext
from ticketdesk.models.membership import (
    DepartmentRole,
    DepartmentRoleName,
    OrganizationRole,
    OrganizationRoleName,
    ProjectRole,
    ProjectRoleName,
)
from ticketdesk.models.organization import Department
from ticketdesk.models.project import Project, project_shared_departments
from ticketdesk.models.ticket import Ticket
from ticketdesk.services.access.facts import (
    AccessFacts,
    AccessFactsLookup,
    EffectiveAccess,
    TicketFacts,
)


class AccessFactsDAO(AccessFactsLookup):
    """
    SQL-backed source of access facts.

    Usage:
        resolver = AccessResolver(AccessFactsDAO(session))
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def load_access_facts(
        self,
        principal: PrincipalContext,
        ticket_id: int,
    ) -> Optional[AccessFacts]:
        ticket = await self.get_ticket_facts(ticket_id)
        if ticket is None:
            return None

        # Roles of another tenant can never grant access; skip the queries.
        if ticket.project_org_id != principal.organization_id:
            return AccessFacts(ticket=ticket, access=EffectiveAccess())

        access = EffectiveAccess(
            organization_role=await self.get_organization_role(
                principal.user_id, principal.organization_id
            ),
            department_roles=await self.get_department_roles(
                principal.user_id, principal.organization_id
            ),
            project_role=await self.get_project_role(principal.user_id, ticket.project_id),
        )
        return AccessFacts(ticket=ticket, access=access)

    async def get_ticket_facts(self, ticket_id: int) -> Optional[TicketFacts]:
        """
        Load a ticket with its project's tenant and departments.

        Returns:
            TicketFacts, or None if the ticket or its project is missing
        """
        result = await self.session.execute(
            select(
                Ticket.id,
                Ticket.project_id,
                Ticket.created_by_user_id,
                Ticket.assigned_to_user_id,
                Project.org_id,
                Project.department_id,
            )
            .join(Project, Project.id == Ticket.project_id)
            .where(Ticket.id == ticket_id)
        )
        row = result.one_or_none()
        if row is None:
            return None

        shared_result = await self.session.execute(
            select(project_shared_departments.c.department_id).where(
                project_shared_departments.c.project_id == row.project_id
            )
        )

        return TicketFacts(
            ticket_id=row.id,
            project_id=row.project_id,
            project_org_id=row.org_id,
            created_by_user_id=row.created_by_user_id,
            assigned_to_user_id=row.assigned_to_user_id,
            owning_department_id=row.department_id,
            shared_department_ids=frozenset(shared_result.scalars().all()),
        )

    async def get_organization_role(
        self, user_id: int, org_id: int
    ) -> Optional[OrganizationRoleName]:
        result = await self.session.execute(
            select(OrganizationRole.role).where(
                OrganizationRole.user_id == user_id,
                OrganizationRole.org_id == org_id,
            )
        )
        return OrganizationRoleName.parse(result.scalar_one_or_none())

    async def get_department_roles(self, user_id: int, org_id: int) -> frozenset:
        """
        Load the caller's department memberships inside one organization.

        Memberships with an unrecognized role name are dropped.

        Returns:
            frozenset of (department_id, DepartmentRoleName) pairs
        """
        result = await self.session.execute(
            select(DepartmentRole.department_id, DepartmentRole.role)
            .join(Department, Department.id == DepartmentRole.department_id)
            .where(
                DepartmentRole.user_id == user_id,
                DepartmentRole.org_id == org_id,
                Department.org_id == org_id,
            )
        )
        roles = set()
        for department_id, raw_role in result.all():
            role = DepartmentRoleName.parse(raw_role)
            if role is not None:
                roles.add((department_id, role))
        return frozenset(roles)

    async def get_project_role(
        self, user_id: int, project_id: int
    ) -> Optional[ProjectRoleName]:
        result = await self.session.execute(
            select(ProjectRole.role).where(
                ProjectRole.user_id == user_id,
                ProjectRole.project_id == project_id,
            )
        )
        return ProjectRoleName.parse(result.scalar_one_or_none())

"""
Database models package.

WHY: Centralizing model imports ensures Alembic and the test fixtures see
every table on Base.metadata.
"""

from ticketdesk.models.base import Base, TimestampMixin, PrimaryKeyMixin
from ticketdesk.models.organization import Organization, Department
from ticketdesk.models.user import User
from ticketdesk.models.project import Project, project_shared_departments
from ticketdesk.models.membership import (
    OrganizationRole,
    DepartmentRole,
    ProjectRole,
    OrganizationRoleName,
    DepartmentRoleName,
    ProjectRoleName,
)
from ticketdesk.models.ticket import Ticket, TicketComment, TicketCommentEdit

__all__ = [
    "Base",
    "TimestampMixin",
    "PrimaryKeyMixin",
    "Organization",
    "Department",
    "User",
    "Project",
    "project_shared_departments",
    "OrganizationRole",
    "DepartmentRole",
    "ProjectRole",
    "OrganizationRoleName",
    "DepartmentRoleName",
    "ProjectRoleName",
    "Ticket",
    "TicketComment",
    "TicketCommentEdit",
]

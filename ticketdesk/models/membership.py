"""
Membership models: organization, department and project roles.

WHAT: Three independent role assignments, all read-only inputs to the
access resolver.

WHY: Role names are stored as the free-text names of the shared role
catalogue (existing rows carry values such as "Admin", "Manager",
"Member", "User"). They are parsed exactly once per request into the
closed enums below, so authorization code never compares raw strings.
"""

import logging
from enum import Enum
from typing import Optional

from sqlalchemy import ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from ticketdesk.models.base import Base, PrimaryKeyMixin, TimestampMixin

logger = logging.getLogger(__name__)


# ============================================================================
# Role enums
# ============================================================================


class _RoleName(str, Enum):
    """Shared parsing for the per-scope role enums."""

    @classmethod
    def _aliases(cls) -> dict:
        return {}

    @classmethod
    def parse(cls, raw: Optional[str]) -> Optional["_RoleName"]:
        """
        Parse a stored role name (case-insensitive).

        Returns:
            The matching member, or None for empty or unknown names
        """
        if not raw:
            return None
        key = raw.strip().lower()
        for member in cls:
            if member.value.lower() == key:
                return member
        alias = cls._aliases().get(key)
        if alias is not None:
            return alias
        logger.warning(f"Unknown {cls.__name__} value ignored: {raw!r}")
        return None


class OrganizationRoleName(_RoleName):
    """
    Organization-level roles.

    ADMIN is capability-complete within its own tenant.
    """

    ADMIN = "Admin"
    MEMBER = "Member"


class DepartmentRoleName(_RoleName):
    """Department-level roles."""

    MANAGER = "Manager"
    MEMBER = "Member"


class ProjectRoleName(_RoleName):
    """
    Project-level roles.

    The legacy name "User" is an alias of MEMBER: both grant visibility into
    every ticket of the project.
    """

    MANAGER = "Manager"
    MEMBER = "Member"

    @classmethod
    def _aliases(cls) -> dict:
        return {"user": cls.MEMBER}


# ============================================================================
# Role assignment models
# ============================================================================


class OrganizationRole(Base, PrimaryKeyMixin, TimestampMixin):
    """At most one role per (user, organization)."""

    __tablename__ = "user_organization_roles"

    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False)
    org_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("organizations.id"), nullable=False
    )
    role: Mapped[str] = mapped_column(String(50), nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "org_id", name="uq_user_organization_roles_user_org"),
    )

    def __repr__(self) -> str:
        return f"<OrganizationRole(user_id={self.user_id}, org_id={self.org_id}, role={self.role})>"


class DepartmentRole(Base, PrimaryKeyMixin, TimestampMixin):
    """
    At most one role per (user, department).

    A user may hold roles in several departments of the same organization.
    """

    __tablename__ = "user_department_roles"

    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False)
    org_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("organizations.id"), nullable=False
    )
    department_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("departments.id"), nullable=False
    )
    role: Mapped[str] = mapped_column(String(50), nullable=False)

    __table_args__ = (
        UniqueConstraint(
            "user_id", "department_id", name="uq_user_department_roles_user_department"
        ),
        Index("ix_user_department_roles_user_org", "user_id", "org_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<DepartmentRole(user_id={self.user_id}, department_id={self.department_id}, "
            f"role={self.role})>"
        )


class ProjectRole(Base, PrimaryKeyMixin, TimestampMixin):
    """At most one role per (user, project)."""

    __tablename__ = "user_project_roles"

    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False)
    project_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("projects.id"), nullable=False
    )
    role: Mapped[str] = mapped_column(String(50), nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "project_id", name="uq_user_project_roles_user_project"),
    )

    def __repr__(self) -> str:
        return f"<ProjectRole(user_id={self.user_id}, project_id={self.project_id}, role={self.role})>"

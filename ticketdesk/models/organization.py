"""
Organization and department models.

WHY: Organizations are tenants; every other record is partitioned by one.
Departments are the organizational units that own and share projects,
which the access resolver uses as a first-class visibility signal.
"""

from typing import List, TYPE_CHECKING

from sqlalchemy import Boolean, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ticketdesk.models.base import Base, PrimaryKeyMixin, TimestampMixin

if TYPE_CHECKING:
    from ticketdesk.models.user import User
    from ticketdesk.models.project import Project


class Organization(Base, PrimaryKeyMixin, TimestampMixin):
    """
    Organization model representing a tenant.

    WHY: Cross-tenant access is always denied; org ids are compared on
    every access check (OWASP A01: Broken Access Control).
    """

    __tablename__ = "organizations"

    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    users: Mapped[List["User"]] = relationship("User", back_populates="organization")
    departments: Mapped[List["Department"]] = relationship(
        "Department", back_populates="organization"
    )
    projects: Mapped[List["Project"]] = relationship("Project", back_populates="organization")

    def __repr__(self) -> str:
        return f"<Organization(id={self.id}, name='{self.name}')>"


class Department(Base, PrimaryKeyMixin, TimestampMixin):
    """
    Department within an organization.

    WHY: Department-scoped work assignment is independent of per-project
    membership: a department sees every ticket of the projects it owns or
    that are shared with it.
    """

    __tablename__ = "departments"

    org_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("organizations.id"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    organization: Mapped["Organization"] = relationship(
        "Organization", back_populates="departments"
    )

    __table_args__ = (
        UniqueConstraint("org_id", "name", name="uq_departments_org_name"),
        Index("ix_departments_org_id", "org_id"),
    )

    def __repr__(self) -> str:
        return f"<Department(id={self.id}, org_id={self.org_id}, name='{self.name}')>"

"""
Project model.

WHAT: Projects group tickets. A project belongs to one organization, is
owned by at most one department, and may be shared with further
departments.

WHY: The owning department and the sharing list are two of the five
signals the access resolver reconciles. Both are read-only to the comment
subsystem.
"""

from typing import List, Optional, TYPE_CHECKING

from sqlalchemy import Column, ForeignKey, Index, Integer, String, Table
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ticketdesk.models.base import Base, PrimaryKeyMixin, TimestampMixin

if TYPE_CHECKING:
    from ticketdesk.models.organization import Organization, Department
    from ticketdesk.models.ticket import Ticket


# Departments a project is explicitly shared with (beyond its owner)
project_shared_departments = Table(
    "project_shared_departments",
    Base.metadata,
    Column("project_id", Integer, ForeignKey("projects.id", ondelete="CASCADE"), primary_key=True),
    Column("department_id", Integer, ForeignKey("departments.id", ondelete="CASCADE"), primary_key=True),
)


class Project(Base, PrimaryKeyMixin, TimestampMixin):
    """
    Project within an organization.

    Security: tickets inherit their tenant from the project's org_id.
    """

    __tablename__ = "projects"

    org_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("organizations.id"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    # Owning department (nullable: org-wide projects have no owner)
    department_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("departments.id"), nullable=True
    )

    organization: Mapped["Organization"] = relationship(
        "Organization", back_populates="projects"
    )
    owning_department: Mapped[Optional["Department"]] = relationship(
        "Department", foreign_keys=[department_id]
    )
    shared_with: Mapped[List["Department"]] = relationship(
        "Department", secondary=project_shared_departments
    )
    tickets: Mapped[List["Ticket"]] = relationship("Ticket", back_populates="project")

    __table_args__ = (
        Index("ix_projects_org_id", "org_id"),
        Index("ix_projects_department_id", "department_id"),
    )

    def __repr__(self) -> str:
        return f"<Project(id={self.id}, org_id={self.org_id}, name='{self.name}')>"

"""
User model.

WHY: Comments reference their author; the API embeds the author's name, email
and profile picture in comment responses. Users belong to exactly one organization.
"""

from typing import TYPE_CHECKING, Optional

from sqlalchemy import Boolean, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ticketdesk.models.base import Base, PrimaryKeyMixin, TimestampMixin

if TYPE_CHECKING:
    from ticketdesk.models.organization import Organization


class User(Base, PrimaryKeyMixin, TimestampMixin):
    """
    User of the platform.

    Roles are not stored here: organization, department and project roles
    live in their own membership tables (see ticketdesk.models.membership).
    """

    __tablename__ = "users"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    profile_picture_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    # WHY: Indexed and NOT NULL; every user belongs to a tenant
    org_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("organizations.id"), nullable=False, index=True
    )

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    organization: Mapped["Organization"] = relationship(
        "Organization", back_populates="users"
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}', org_id={self.org_id})>"

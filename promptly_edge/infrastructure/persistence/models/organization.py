"""Organization (tenant) and membership ORM models."""

from sqlalchemy import ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from promptly_edge.infrastructure.persistence.database import Base
from promptly_edge.infrastructure.persistence.models.mixins import IdMixin, TimestampMixin


class Organization(IdMixin, TimestampMixin, Base):
    """Tenant: unit of prompt ownership and usage accounting. Table: organization."""

    __tablename__ = "organization"

    name: Mapped[str] = mapped_column(String, nullable=False)


class Member(IdMixin, TimestampMixin, Base):
    """Links a user to an organization. Table: member."""

    __tablename__ = "member"

    organization_id: Mapped[str] = mapped_column(
        String, ForeignKey("organization.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    role: Mapped[str] = mapped_column(String, nullable=False, default="member")

    __table_args__ = (UniqueConstraint("organization_id", "user_id", name="uq_member_org_user"),)

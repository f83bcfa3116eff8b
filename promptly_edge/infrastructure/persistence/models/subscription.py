"""Subscription ORM model: an organization's plan and billing status."""

from sqlalchemy import CheckConstraint, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from promptly_edge.domain.enums import Plan
from promptly_edge.infrastructure.persistence.database import Base
from promptly_edge.infrastructure.persistence.models.mixins import IdMixin, TimestampMixin


class Subscription(IdMixin, TimestampMixin, Base):
    """Table: subscription. status: active, trialing, past_due, canceled, ..."""

    __tablename__ = "subscription"

    organization_id: Mapped[str] = mapped_column(
        String, ForeignKey("organization.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    plan: Mapped[str] = mapped_column(String, nullable=False, default=Plan.FREE.value)
    status: Mapped[str] = mapped_column(String, nullable=False, default="active")

    __table_args__ = (
        CheckConstraint(
            "plan IN ({})".format(", ".join(f"'{v}'" for v in Plan.values())),
            name="subscription_plan_check",
        ),
    )

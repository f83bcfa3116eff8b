"""Monthly API usage counter. One row per (organization, period); never deleted."""

from sqlalchemy import CheckConstraint, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from promptly_edge.infrastructure.persistence.database import Base
from promptly_edge.infrastructure.persistence.models.mixins import TimestampMixin


class ApiUsage(TimestampMixin, Base):
    """Table: api_usage. period is YYYY-MM (UTC); count only increases."""

    __tablename__ = "api_usage"

    organization_id: Mapped[str] = mapped_column(
        String, ForeignKey("organization.id", ondelete="CASCADE"), primary_key=True
    )
    period: Mapped[str] = mapped_column(String(7), primary_key=True)
    count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    __table_args__ = (CheckConstraint("count >= 0", name="api_usage_count_check"),)

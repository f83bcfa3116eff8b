"""Prompt and prompt version ORM models."""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from promptly_edge.infrastructure.persistence.database import Base
from promptly_edge.infrastructure.persistence.models.mixins import IdMixin, TimestampMixin


class Prompt(IdMixin, TimestampMixin, Base):
    """Table: prompt. Soft-deleted when deleted_at is set."""

    __tablename__ = "prompt"

    organization_id: Mapped[str] = mapped_column(
        String, ForeignKey("organization.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class PromptVersion(IdMixin, TimestampMixin, Base):
    """Table: prompt_version. Published when published_at is set; content then never changes."""

    __tablename__ = "prompt_version"

    prompt_id: Mapped[str] = mapped_column(
        String, ForeignKey("prompt.id", ondelete="CASCADE"), nullable=False, index=True
    )
    major: Mapped[int] = mapped_column(Integer, nullable=False)
    minor: Mapped[int] = mapped_column(Integer, nullable=False)
    patch: Mapped[int] = mapped_column(Integer, nullable=False)
    system_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    user_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    config: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    published_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        UniqueConstraint("prompt_id", "major", "minor", "patch", name="uq_prompt_version_semver"),
    )

    @property
    def semver(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"

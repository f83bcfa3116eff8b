"""API key ORM model. Only the SHA-256 hash of the raw key is stored."""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Boolean, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from promptly_edge.infrastructure.persistence.database import Base
from promptly_edge.infrastructure.persistence.models.mixins import IdMixin, TimestampMixin


class ApiKey(IdMixin, TimestampMixin, Base):
    """Table: apikey. permissions is {"resource": ["action", ...]}."""

    __tablename__ = "apikey"

    key: Mapped[str] = mapped_column(String, unique=True, nullable=False, index=True)
    user_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    permissions: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

"""Cached entity shapes.

Each entity is an immutable value stored in the cache tiers as a plain
JSON-compatible dict (to_cache) and rebuilt on read (from_cache). Entries
are always replaced wholesale, never patched in place.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


@dataclass(frozen=True)
class CachedApiKey:
    """API key snapshot: owning organization, permissions and validity flags."""

    organization_id: str
    permissions: dict[str, frozenset[str]]
    enabled: bool
    expires_at: datetime | None = None

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at is not None and self.expires_at < now

    def allows(self, resource: str, action: str) -> bool:
        return action in self.permissions.get(resource, frozenset())

    def to_cache(self) -> dict[str, Any]:
        return {
            "organizationId": self.organization_id,
            "permissions": {r: sorted(a) for r, a in self.permissions.items()},
            "enabled": self.enabled,
            "expiresAt": self.expires_at.isoformat() if self.expires_at else None,
        }

    @classmethod
    def from_cache(cls, data: dict[str, Any]) -> CachedApiKey:
        expires_at = data.get("expiresAt")
        return cls(
            organization_id=data["organizationId"],
            permissions={
                r: frozenset(a) for r, a in (data.get("permissions") or {}).items()
            },
            enabled=bool(data["enabled"]),
            expires_at=datetime.fromisoformat(expires_at) if expires_at else None,
        )


@dataclass(frozen=True)
class CachedPrompt:
    """Prompt metadata. Name and description are mutable, so always TTL-bounded."""

    id: str
    organization_id: str
    name: str
    description: str | None = None

    def to_cache(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "organizationId": self.organization_id,
            "name": self.name,
            "description": self.description,
        }

    @classmethod
    def from_cache(cls, data: dict[str, Any]) -> CachedPrompt:
        return cls(
            id=data["id"],
            organization_id=data["organizationId"],
            name=data["name"],
            description=data.get("description"),
        )


@dataclass(frozen=True)
class CachedVersion:
    """Content of one published prompt version (immutable once published)."""

    version: str
    system_message: str | None
    user_message: str | None
    config: dict[str, Any] = field(default_factory=dict)

    def to_cache(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "systemMessage": self.system_message,
            "userMessage": self.user_message,
            "config": self.config,
        }

    @classmethod
    def from_cache(cls, data: dict[str, Any]) -> CachedVersion:
        return cls(
            version=data["version"],
            system_message=data.get("systemMessage"),
            user_message=data.get("userMessage"),
            config=dict(data.get("config") or {}),
        )


@dataclass(frozen=True)
class UsageCounter:
    """Snapshot of a tenant's call count for one period (YYYY-MM)."""

    tenant_id: str
    period: str
    count: int

    def incremented(self) -> UsageCounter:
        return UsageCounter(self.tenant_id, self.period, self.count + 1)

    def to_cache(self) -> dict[str, Any]:
        return {"tenantId": self.tenant_id, "period": self.period, "count": self.count}

    @classmethod
    def from_cache(cls, data: dict[str, Any]) -> UsageCounter:
        return cls(
            tenant_id=data["tenantId"], period=data["period"], count=int(data["count"])
        )


@dataclass(frozen=True)
class PlanLimit:
    """Resolved plan for a tenant. limit None means unlimited."""

    tenant_id: str
    plan: str
    limit: int | None

    def to_cache(self) -> dict[str, Any]:
        return {"tenantId": self.tenant_id, "plan": self.plan, "limit": self.limit}

    @classmethod
    def from_cache(cls, data: dict[str, Any]) -> PlanLimit:
        return cls(tenant_id=data["tenantId"], plan=data["plan"], limit=data["limit"])


@dataclass(frozen=True)
class UsageStatus:
    """Result of a quota check; carries everything the rate-limit headers need."""

    allowed: bool
    plan: str
    limit: int | None
    used: int
    remaining: int | None
    reset_at: datetime

    @property
    def reset_epoch(self) -> int:
        """Reset instant as unix seconds."""
        return int(self.reset_at.astimezone(timezone.utc).timestamp())

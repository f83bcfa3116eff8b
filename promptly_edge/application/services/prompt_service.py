"""Prompt and version resolution with cache-aside lookups.

Metadata and version are independent cache entries with their own
lifetimes: metadata and the "latest" pointer expire after a TTL, while a
specific published version is cached with no expiry because its content
never changes. Ownership is checked after resolution, not encoded in keys.
"""

from __future__ import annotations

import asyncio
import re

from promptly_edge.core.constants import CACHE_KEY_SEP
from promptly_edge.domain.entities import CachedPrompt, CachedVersion
from promptly_edge.domain.outcomes import (
    BadRequest,
    PromptNotFound,
    PromptResponse,
    PromptResult,
    VersionNotFound,
)
from promptly_edge.infrastructure.cache.keys import prompt_key, version_key
from promptly_edge.infrastructure.cache.tiered_cache import (
    INDEFINITE,
    ExpireAfter,
    SharedTtl,
    TieredCache,
)
from promptly_edge.infrastructure.persistence.datastore import Datastore

SEMVER_RE = re.compile(r"^(\d+)\.(\d+)\.(\d+)$")


def normalize_version(version: str) -> str | None:
    """Return MAJOR.MINOR.PATCH without leading zeros, or None if malformed."""
    match = SEMVER_RE.fullmatch(version.strip())
    if match is None:
        return None
    return ".".join(str(int(part)) for part in match.groups())


class PromptService:
    """Resolves a prompt plus one of its published versions for an organization."""

    def __init__(self, cache: TieredCache, datastore: Datastore, *, ttl: int = 300) -> None:
        self.cache = cache
        self.datastore = datastore
        self.ttl = ttl

    async def get_prompt(self, prompt_id: str) -> CachedPrompt | None:
        key = prompt_key(prompt_id)
        cached = await self.cache.read_entity(key, CachedPrompt.from_cache)
        if cached is not None:
            return cached
        record = await self.datastore.get_prompt(prompt_id)
        if record is None:
            return None
        prompt = CachedPrompt(
            id=record.id,
            organization_id=record.organization_id,
            name=record.name,
            description=record.description,
        )
        await self.cache.write(key, prompt.to_cache(), ExpireAfter(self.ttl))
        return prompt

    async def get_version(self, prompt_id: str, version: str | None) -> CachedVersion | None:
        """Return a published version; None selects the latest.

        version must be normalized MAJOR.MINOR.PATCH. Unpublished versions
        are not cached, so a later publish is visible on the next request.
        """
        key = version_key(prompt_id, version)
        cached = await self.cache.read_entity(key, CachedVersion.from_cache)
        if cached is not None:
            return cached
        record = await self.datastore.get_prompt_version(prompt_id, version)
        if record is None:
            return None
        content = CachedVersion(
            version=record.version,
            system_message=record.system_message,
            user_message=record.user_message,
            config=record.config,
        )
        shared_ttl: SharedTtl = INDEFINITE if version is not None else ExpireAfter(self.ttl)
        await self.cache.write(key, content.to_cache(), shared_ttl)
        return content

    async def resolve(
        self, prompt_id: str, organization_id: str, version: str | None = None
    ) -> PromptResult:
        """Return the prompt response or a typed not-found / bad-request outcome.

        Raises DatastoreError when the store is unreachable.
        """
        if not prompt_id or CACHE_KEY_SEP in prompt_id:
            return PromptNotFound(prompt_id)
        if version is not None:
            normalized = normalize_version(version)
            if normalized is None:
                return BadRequest(f"Invalid version format: {version!r} (expected MAJOR.MINOR.PATCH)")
            version = normalized
        prompt, content = await asyncio.gather(
            self.get_prompt(prompt_id),
            self.get_version(prompt_id, version),
        )
        if prompt is None or prompt.organization_id != organization_id:
            return PromptNotFound(prompt_id)
        if content is None:
            return VersionNotFound(prompt_id, version)
        return PromptResponse(
            prompt_id=prompt.id,
            prompt_name=prompt.name,
            version=content.version,
            system_message=content.system_message,
            user_message=content.user_message,
            config=content.config,
        )

"""Typed results returned to the request handler.

Lookups never raise for logical failures (unknown key, missing prompt,
malformed version); they return one of these values and the handler maps
them to status codes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union

from promptly_edge.domain.enums import ApiKeyRejection


@dataclass(frozen=True)
class ApiKeyValid:
    organization_id: str
    permissions: dict[str, frozenset[str]]


@dataclass(frozen=True)
class ApiKeyInvalid:
    reason: ApiKeyRejection


ApiKeyResult = Union[ApiKeyValid, ApiKeyInvalid]


@dataclass(frozen=True)
class PromptResponse:
    """Prompt metadata merged with the content of the resolved version."""

    prompt_id: str
    prompt_name: str
    version: str
    system_message: str | None
    user_message: str | None
    config: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "promptId": self.prompt_id,
            "promptName": self.prompt_name,
            "version": self.version,
            "systemMessage": self.system_message,
            "userMessage": self.user_message,
            "config": self.config,
        }


@dataclass(frozen=True)
class PromptNotFound:
    prompt_id: str


@dataclass(frozen=True)
class VersionNotFound:
    prompt_id: str
    version: str | None

    @property
    def message(self) -> str:
        if self.version:
            return f"Version {self.version} not found"
        return "No published version found"


@dataclass(frozen=True)
class BadRequest:
    message: str


PromptResult = Union[PromptResponse, PromptNotFound, VersionNotFound, BadRequest]

"""ORM models. Import here so Base.metadata sees every table."""

from promptly_edge.infrastructure.persistence.models.api_key import ApiKey
from promptly_edge.infrastructure.persistence.models.api_usage import ApiUsage
from promptly_edge.infrastructure.persistence.models.organization import (
    Member,
    Organization,
)
from promptly_edge.infrastructure.persistence.models.prompt import Prompt, PromptVersion
from promptly_edge.infrastructure.persistence.models.subscription import Subscription

__all__ = [
    "ApiKey",
    "ApiUsage",
    "Member",
    "Organization",
    "Prompt",
    "PromptVersion",
    "Subscription",
]

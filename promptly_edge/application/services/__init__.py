"""Application services: cache-aside lookups and usage accounting."""

from promptly_edge.application.services.api_key_service import ApiKeyService, hash_api_key
from promptly_edge.application.services.prompt_service import PromptService
from promptly_edge.application.services.usage_service import UsageAccounter

__all__ = ["ApiKeyService", "PromptService", "UsageAccounter", "hash_api_key"]

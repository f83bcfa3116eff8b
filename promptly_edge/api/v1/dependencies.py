"""API v1 dependencies: process-scoped services from app.state and API key auth."""

from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from promptly_edge.application.services import ApiKeyService, PromptService, UsageAccounter
from promptly_edge.core.config import Settings, get_settings
from promptly_edge.domain.enums import ApiKeyRejection
from promptly_edge.domain.exceptions import AuthenticationException, AuthorizationException
from promptly_edge.domain.outcomes import ApiKeyInvalid, ApiKeyValid

_bearer = HTTPBearer(auto_error=False)

_REJECTION_MESSAGES: dict[ApiKeyRejection, str] = {
    ApiKeyRejection.INVALID_KEY: "Invalid API key",
    ApiKeyRejection.DISABLED: "API key is disabled",
    ApiKeyRejection.EXPIRED: "API key has expired",
    ApiKeyRejection.FORBIDDEN: "API key lacks the required permission",
}


def get_api_key_service(request: Request) -> ApiKeyService:
    return request.app.state.api_keys


def get_prompt_service(request: Request) -> PromptService:
    return request.app.state.prompts


def get_usage_accounter(request: Request) -> UsageAccounter:
    return request.app.state.usage


async def require_api_key(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(_bearer)],
    api_keys: Annotated[ApiKeyService, Depends(get_api_key_service)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> ApiKeyValid:
    """Resolve the bearer API key or raise 401/403."""
    if credentials is None or not credentials.credentials:
        raise AuthenticationException("Missing Authorization header")
    result = await api_keys.resolve(
        credentials.credentials,
        settings.required_permission_resource,
        settings.required_permission_action,
    )
    if isinstance(result, ApiKeyInvalid):
        message = _REJECTION_MESSAGES[result.reason]
        if result.reason is ApiKeyRejection.FORBIDDEN:
            raise AuthorizationException(message)
        raise AuthenticationException(message, result.reason.value)
    return result

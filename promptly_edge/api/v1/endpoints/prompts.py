"""Prompt read endpoint."""

import asyncio
from typing import Annotated, Any

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Response

from promptly_edge.api.v1.dependencies import (
    get_prompt_service,
    get_usage_accounter,
    require_api_key,
)
from promptly_edge.application.services import PromptService, UsageAccounter
from promptly_edge.domain.entities import UsageStatus
from promptly_edge.domain.exceptions import (
    RateLimitExceededException,
    ResourceNotFoundException,
    ValidationException,
)
from promptly_edge.domain.outcomes import (
    ApiKeyValid,
    BadRequest,
    PromptNotFound,
    VersionNotFound,
)

router = APIRouter()


def rate_limit_headers(status: UsageStatus) -> dict[str, str]:
    """X-RateLimit-* headers; unlimited plans report "unlimited"."""
    return {
        "X-RateLimit-Limit": "unlimited" if status.limit is None else str(status.limit),
        "X-RateLimit-Remaining": "unlimited" if status.remaining is None else str(status.remaining),
        "X-RateLimit-Reset": str(status.reset_epoch),
    }


@router.get("/{prompt_id}")
async def get_prompt(
    prompt_id: str,
    response: Response,
    background_tasks: BackgroundTasks,
    api_key: Annotated[ApiKeyValid, Depends(require_api_key)],
    prompts: Annotated[PromptService, Depends(get_prompt_service)],
    usage: Annotated[UsageAccounter, Depends(get_usage_accounter)],
    version: Annotated[str | None, Query(description="MAJOR.MINOR.PATCH; latest when omitted")] = None,
) -> dict[str, Any]:
    """Return a published prompt version; counts one call against the monthly quota.

    The quota check and the prompt lookup are independent once the
    organization is known, so they run concurrently; the quota verdict
    is applied first.
    """
    organization_id = api_key.organization_id
    status, result = await asyncio.gather(
        usage.check_limit(organization_id),
        prompts.resolve(prompt_id, organization_id, version or None),
    )
    if not status.allowed and status.limit is not None:
        raise RateLimitExceededException(status.limit, status.reset_epoch)

    if isinstance(result, BadRequest):
        raise ValidationException(result.message, "INVALID_VERSION")
    if isinstance(result, PromptNotFound):
        raise ResourceNotFoundException("Prompt not found")
    if isinstance(result, VersionNotFound):
        raise ResourceNotFoundException(result.message, "VERSION_NOT_FOUND")

    response.headers.update(rate_limit_headers(status))
    background_tasks.add_task(usage.record_usage, organization_id)
    return result.to_dict()

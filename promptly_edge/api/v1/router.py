"""API v1 router aggregation.

Includes all endpoint modules with consistent prefix and tags. Services come
from promptly_edge.api.v1.dependencies (built once by the lifespan).
"""

from fastapi import APIRouter

from promptly_edge.api.v1.endpoints import health, prompts

api_router = APIRouter()

api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(prompts.router, prefix="/prompts", tags=["prompts"])

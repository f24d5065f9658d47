"""API v1 router aggregation.

Includes all endpoint modules with consistent prefix and tags. All routes
use dependencies from gatepass.api.v1.dependencies (no manual repo/service construction).
"""

from fastapi import APIRouter

from gatepass.api.v1.endpoints import guest_passes, health, policies

api_router = APIRouter()

api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(guest_passes.router, prefix="/projects", tags=["guest-passes"])
api_router.include_router(policies.router, prefix="/projects", tags=["policies"])

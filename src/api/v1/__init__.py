"""
API v1 package.

Contains versioned API routes for the account onboarding API.
"""

from fastapi import APIRouter

from src.api.v1 import admin, roles, routes, users

router = APIRouter()
router.include_router(routes.router)
router.include_router(admin.router)
router.include_router(roles.router)
router.include_router(users.router)

__all__ = ["router"]

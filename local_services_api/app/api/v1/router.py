"""
Top‑level router for version 1 of the API.

This router aggregates the domain routers under their prefixes.  When
a new domain is added, include its router here.
"""

from fastapi import APIRouter

from .endpoints import (
    auth,
    categories,
    feedback,
    health,
    profile,
    requests,
    services,
)

router = APIRouter()

router.include_router(health.router, tags=["health"])
router.include_router(auth.router, prefix="/auth", tags=["auth"])
router.include_router(services.router, prefix="/services", tags=["services"])
router.include_router(requests.router, prefix="/requests", tags=["requests"])
router.include_router(categories.router, prefix="/categories", tags=["categories"])
router.include_router(feedback.router, prefix="/feedback", tags=["feedback"])
router.include_router(profile.router, prefix="/profile", tags=["profile"])

"""API v1 router combining all route modules."""

from fastapi import APIRouter

from wishlist.api.v1 import assistant, categories, health

api_router = APIRouter()

# Include health check routes (no prefix)
api_router.include_router(health.router)

# Category directory (public, read-only)
api_router.include_router(
    categories.router,
    prefix="/categories",
    tags=["categories"],
)

# Assistant chat and suggestions (requires auth)
api_router.include_router(
    assistant.router,
    prefix="/assistant",
    tags=["assistant"],
)

"""
API Version 1 Router.

Combines all API endpoints under /api/v1 prefix.
"""

from fastapi import APIRouter

from tropicario.api.v1.endpoints import admin, auth, comments, sections, threads, topics, users

router = APIRouter()

# Include endpoint routers
router.include_router(auth.router, prefix="/auth", tags=["Auth"])
router.include_router(users.router, prefix="/users", tags=["Users"])
router.include_router(admin.router, prefix="/admin", tags=["Admin"])
router.include_router(sections.router, prefix="/sections", tags=["Sections"])
router.include_router(threads.router, prefix="/threads", tags=["Threads"])
router.include_router(topics.router, prefix="/topics", tags=["Topics"])
router.include_router(comments.router, prefix="/comments", tags=["Comments"])

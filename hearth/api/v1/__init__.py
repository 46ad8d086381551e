"""API v1 routes."""

from fastapi import APIRouter

from hearth.api.v1 import admin, auth, events, health, messages, resources, users

router = APIRouter()
router.include_router(health.router, prefix="/health", tags=["health"])
router.include_router(auth.router, prefix="/auth", tags=["auth"])
router.include_router(users.router, prefix="/users", tags=["users"])
router.include_router(admin.router, prefix="/admin", tags=["admin"])
router.include_router(events.router, prefix="/events", tags=["events"])
router.include_router(resources.router, prefix="/resources", tags=["resources"])
router.include_router(messages.router, prefix="/messages", tags=["messages"])

"""
API v1 Router.

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter
from carmarket.app.api.v1.endpoints import auth, users, cars, notifications, admin

router = APIRouter()

# Identity
router.include_router(auth.router)
router.include_router(users.router)

# Listings and moderation
router.include_router(cars.router)

# Notifications
router.include_router(notifications.router)

# Admin endpoints
router.include_router(admin.router)

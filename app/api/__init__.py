from fastapi import APIRouter

from .routes import (
    auth,
    health,
    orders,
    properties,
    regions,
    suburbs,
    subscription,
)

api_router = APIRouter()

# Health check
api_router.include_router(health.router, tags=["health"])

# Session auth
api_router.include_router(auth.router, prefix="/api/auth", tags=["auth"])

# Member account
api_router.include_router(subscription.router, prefix="/api/user", tags=["subscription"])
api_router.include_router(orders.router, prefix="/api/orders", tags=["orders"])

# Report proxies (public, blurred for anonymous and free users)
api_router.include_router(suburbs.router, prefix="/api/suburb", tags=["suburbs"])
api_router.include_router(properties.router, prefix="/api/property", tags=["properties"])
api_router.include_router(regions.router, prefix="/api/region", tags=["regions"])

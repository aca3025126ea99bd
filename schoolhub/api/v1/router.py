"""Version 1 API: every endpoint router under its prefix."""

from fastapi import APIRouter

from schoolhub.api.v1.endpoints import auth, health, permissions, roles, users

ROUTES = (
    (auth.router, "/auth", "Authentication"),
    (users.router, "/users", "Users"),
    (roles.router, "/roles", "Roles"),
    (permissions.router, "/permissions", "Permissions"),
    (health.router, "/health", "Health"),
)

api_router = APIRouter()

for router, prefix, tag in ROUTES:
    api_router.include_router(router, prefix=prefix, tags=[tag])

"""Top level API router registration."""
from fastapi import APIRouter, FastAPI

from clubhub.api.routes import club_requests, clubs, elections, health, users


def register_routes(application: FastAPI) -> None:
    """Register all API routers with the FastAPI application."""
    api_router = APIRouter(prefix="/api")

    api_router.include_router(health.router, tags=["health"])
    api_router.include_router(clubs.router, tags=["clubs"])
    api_router.include_router(users.router, tags=["users"])
    api_router.include_router(club_requests.router, tags=["club-requests"])
    api_router.include_router(elections.router, tags=["elections"])

    application.include_router(api_router)


__all__ = ["register_routes"]

from fastapi import FastAPI

from app.config import Settings

from .notifications import router as notifications_router
from .notifications import test_router as notifications_test_router


def register_routes(app: FastAPI, settings: Settings) -> None:
    """Register every API router on the FastAPI application."""

    app.include_router(notifications_router)
    if not settings.is_production:
        app.include_router(notifications_test_router)

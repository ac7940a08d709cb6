"""
Home Endpoint.

Welcome document listing the main entry points of the API.
"""

from typing import Any

from fastapi import APIRouter

from notekeeper.core.config import get_app_config

router = APIRouter()


@router.get("/", summary="Welcome message")
async def home() -> dict[str, Any]:
    """Return API identity and the paths clients usually need first."""
    app_settings = get_app_config().application
    prefix = app_settings.api_prefix

    return {
        "message": f"Welcome to {app_settings.name}",
        "version": app_settings.version,
        "description": app_settings.description,
        "documentation": "/docs" if app_settings.docs_enabled else None,
        "auth_register": f"{prefix}/auth/register",
        "auth_login": f"{prefix}/auth/login",
        "notes_api": f"{prefix}/notes",
    }

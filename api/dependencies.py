"""FastAPI dependency injection functions."""

from fastapi import Depends

from api.config import Settings, get_settings
from services.director import DirectorService


async def get_settings_dependency() -> Settings:
    """Get application settings."""
    return get_settings()


async def get_director_service(
    settings: Settings = Depends(get_settings_dependency),
) -> DirectorService:
    """Get a director service configured from settings."""
    return DirectorService(settings)

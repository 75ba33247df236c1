"""
FastAPI dependency injection for the Brand Snapshot backend.

Key Dependencies Provided:
- get_settings_dependency: Returns the cached Settings singleton
- SettingsDep: Annotated alias for endpoint signatures

Database access goes through brand_snapshot.core.database.get_db_pool in
the record and storage services, which fetch on separate pooled
connections concurrently rather than through one request-scoped session.
"""

from typing import Annotated

from fastapi import Depends

from brand_snapshot.core.config import Settings, get_settings


def get_settings_dependency() -> Settings:
    """
    Return the Settings singleton instance.

    Thin wrapper around get_settings() so tests can use
    app.dependency_overrides[get_settings_dependency] = lambda: mock_settings
    """
    return get_settings()


# Usage: async def endpoint(settings: SettingsDep)
SettingsDep = Annotated[Settings, Depends(get_settings_dependency)]

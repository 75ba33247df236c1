"""
Core infrastructure package for the Brand Snapshot backend.

Provides:
- Configuration management via pydantic-settings
- Async PostgreSQL connectivity via asyncpg
- FastAPI dependency injection utilities

Usage:
    from brand_snapshot.core import get_settings, init_db, close_db, SettingsDep
"""

from brand_snapshot.core.config import Settings, get_settings

from brand_snapshot.core.database import init_db, close_db, get_db_pool

from brand_snapshot.core.dependencies import get_settings_dependency, SettingsDep


__all__ = [
    # Configuration management (from config.py)
    'Settings',
    'get_settings',
    # Database pool lifecycle (from database.py)
    'init_db',
    'close_db',
    'get_db_pool',
    # FastAPI dependency injection (from dependencies.py)
    'get_settings_dependency',
    'SettingsDep',
]

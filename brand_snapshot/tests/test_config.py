"""
Tests for environment-driven settings.
"""

import pytest
from pydantic import ValidationError

from brand_snapshot.core.config import Settings


class TestSettings:

    def test_defaults(self, monkeypatch):
        monkeypatch.setenv('DATABASE_URL', 'postgresql://user:pw@localhost:5432/snapshots')
        settings = Settings(_env_file=None)

        assert settings.database_url == 'postgresql://user:pw@localhost:5432/snapshots'
        assert settings.top_behaviors_limit == 5
        assert settings.top_sub_behaviors_limit == 3
        assert settings.persist_snapshots is True

    def test_database_url_required(self, monkeypatch):
        monkeypatch.delenv('DATABASE_URL', raising=False)
        with pytest.raises(ValidationError):
            Settings(_env_file=None)

    def test_only_used_settings_are_declared(self):
        assert set(Settings.model_fields) == {
            'database_url',
            'cors_allowed_origins',
            'top_behaviors_limit',
            'top_sub_behaviors_limit',
            'persist_snapshots',
            'db_pool_min_size',
            'db_pool_max_size',
            'db_command_timeout',
        }

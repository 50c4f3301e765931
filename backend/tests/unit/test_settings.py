"""Unit tests for application settings."""
import os
from unittest.mock import patch

from finassist.core.settings import Settings


class TestSettings:
    """Test settings defaults and environment variable overrides."""

    def test_extraction_defaults(self):
        """Extraction and categorization defaults."""
        settings = Settings(_env_file=None)

        assert settings.default_currency == "INR"
        assert settings.fallback_category_name == "Other"
        assert settings.auto_create_categories is False
        assert settings.category_vocabulary_path is None
        assert settings.backend_timeout_s == 30.0
        assert settings.store_timeout_s == 10

    def test_backend_defaults(self):
        settings = Settings(_env_file=None)

        assert settings.ai_provider == "gemini"
        assert settings.openai_whisper_model == "whisper-1"
        assert settings.admin_api_key is None

    def test_configured_backends_follow_keys(self):
        assert Settings(openai_api_key=None, gemini_api_key=None).configured_backends == []
        assert Settings(openai_api_key="sk", gemini_api_key=None).configured_backends == ["openai"]
        assert Settings(openai_api_key="sk", gemini_api_key="g").configured_backends == ["openai", "gemini"]

    def test_environment_overrides(self):
        env = {
            "AI_PROVIDER": "openai",
            "BACKEND_TIMEOUT_S": "12.5",
            "AUTO_CREATE_CATEGORIES": "true",
            "DEFAULT_CURRENCY": "USD",
        }
        with patch.dict(os.environ, env):
            settings = Settings(_env_file=None)

        assert settings.ai_provider == "openai"
        assert settings.backend_timeout_s == 12.5
        assert settings.auto_create_categories is True
        assert settings.default_currency == "USD"

    def test_only_one_database_url(self):
        assert "database_url" in Settings.model_fields
        assert "test_database_url" not in Settings.model_fields

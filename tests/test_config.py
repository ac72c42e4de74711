"""
Unit tests for environment-based configuration.
"""

import pytest

from core.config import AppConfig, ConfigError, load_config


class TestLoadConfig:
    """Test cases for load_config."""

    def test_defaults(self):
        config = load_config(environ={}, use_dotenv=False)

        assert config == AppConfig()
        assert config.db_path == "expenses.db"
        assert config.ocr_provider == "ocrspace"
        assert config.ocr_space_api_key == ""
        assert config.ocr_timeout == 30.0
        assert config.currency == "PKR"

    def test_overrides(self):
        config = load_config(environ={
            "EXPENSE_DB_PATH": "/tmp/test.db",
            "OCR_SPACE_API_KEY": "secret",
            "OCR_TIMEOUT": "12.5",
            "OCR_MAX_UPLOAD_BYTES": "2048",
            "EXPENSE_CURRENCY": "USD",
            "UNRELATED": "ignored",
        }, use_dotenv=False)

        assert config.db_path == "/tmp/test.db"
        assert config.ocr_space_api_key == "secret"
        assert config.ocr_timeout == 12.5
        assert config.ocr_max_upload_bytes == 2048
        assert config.currency == "USD"

    def test_empty_values_ignored(self):
        """Test blank variables fall back to defaults."""
        config = load_config(environ={"EXPENSE_DB_PATH": "", "OCR_TIMEOUT": ""}, use_dotenv=False)

        assert config.db_path == "expenses.db"
        assert config.ocr_timeout == 30.0

    def test_provider_normalized(self):
        config = load_config(environ={"OCR_PROVIDER": " Tesseract "}, use_dotenv=False)

        assert config.ocr_provider == "tesseract"

    @pytest.mark.parametrize("environ", [
        {"OCR_PROVIDER": "foo"},
        {"OCR_TIMEOUT": "abc"},
        {"OCR_TIMEOUT": "0"},
        {"OCR_MAX_UPLOAD_BYTES": "-1"},
    ])
    def test_invalid_values(self, environ):
        with pytest.raises(ConfigError):
            load_config(environ=environ, use_dotenv=False)

"""
Application configuration for the expense tracker.
Values come from the environment, optionally seeded from a .env file.
"""

import os
import logging
from typing import Optional, Mapping

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator

logger = logging.getLogger(__name__)

OCR_PROVIDERS = ("ocrspace", "tesseract")


class ConfigError(Exception):
    """Raised when the environment holds an invalid setting."""


class AppConfig(BaseModel):
    """Settings passed explicitly to the components that need them."""

    db_path: str = Field("expenses.db", description="SQLite database file")
    ocr_provider: str = Field("ocrspace", description="OCR engine: ocrspace or tesseract")
    ocr_space_api_key: str = Field("", description="OCR.space API key")
    ocr_space_url: str = Field("https://api.ocr.space/parse/image", description="OCR.space endpoint")
    ocr_language: str = Field("eng", description="OCR language code")
    ocr_timeout: float = Field(30.0, gt=0, description="OCR request timeout in seconds")
    ocr_max_upload_bytes: int = Field(1024 * 1024, gt=0, description="Largest accepted receipt image")
    log_file: str = Field("expense_tracker.log", description="Log file path")
    currency: str = Field("PKR", min_length=3, max_length=3, description="Display currency code")

    @field_validator('ocr_provider')
    @classmethod
    def validate_ocr_provider(cls, v):
        v = v.strip().lower()
        if v not in OCR_PROVIDERS:
            raise ValueError(f"OCR provider must be one of {', '.join(OCR_PROVIDERS)}")
        return v


# Environment variable -> AppConfig field
ENV_VARS = {
    "EXPENSE_DB_PATH": "db_path",
    "OCR_PROVIDER": "ocr_provider",
    "OCR_SPACE_API_KEY": "ocr_space_api_key",
    "OCR_SPACE_URL": "ocr_space_url",
    "OCR_LANGUAGE": "ocr_language",
    "OCR_TIMEOUT": "ocr_timeout",
    "OCR_MAX_UPLOAD_BYTES": "ocr_max_upload_bytes",
    "EXPENSE_LOG_FILE": "log_file",
    "EXPENSE_CURRENCY": "currency",
}


def load_config(environ: Optional[Mapping[str, str]] = None, use_dotenv: bool = True) -> AppConfig:
    """Build the application configuration.

    Args:
        environ: Mapping to read from, defaults to os.environ
        use_dotenv: Load a .env file into os.environ first

    Returns:
        Validated AppConfig

    Raises:
        ConfigError: If a value fails validation
    """
    if use_dotenv:
        load_dotenv()

    source = os.environ if environ is None else environ
    values = {
        field: source[var]
        for var, field in ENV_VARS.items()
        if source.get(var) not in (None, "")
    }

    try:
        config = AppConfig(**values)
    except ValidationError as e:
        logger.error(f"Invalid configuration: {e}")
        raise ConfigError(str(e)) from e

    if config.ocr_provider == "ocrspace" and not config.ocr_space_api_key:
        logger.warning("OCR_SPACE_API_KEY is not set, receipt scanning will be unavailable")

    return config

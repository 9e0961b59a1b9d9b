"""
Application configuration and settings management.
"""
import os
from pathlib import Path
from typing import List
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

VALID_LOG_LEVELS = {'debug', 'info', 'warning', 'error', 'critical'}


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {'1', 'true', 'yes', 'on'}


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, default))
    except (TypeError, ValueError):
        return -1


class Config:
    """Application configuration from environment variables."""

    # Server settings
    HOST = os.getenv('HOST', '0.0.0.0')
    PORT = _env_int('PORT', 3001)
    APP_ENV = os.getenv('FLASK_ENV', os.getenv('NODE_ENV', 'development'))
    FLASK_DEBUG = _env_bool('FLASK_DEBUG', False)
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'info').lower()
    APP_VERSION = '1.0.0'
    CORS_ORIGINS = os.getenv('CORS_ORIGINS', '*')

    # Switch inventory file, shape {"switches": [...]}
    SWITCHES_CONFIG = os.getenv(
        'SWITCHES_CONFIG',
        str(Path(__file__).resolve().parent / 'switches.json')
    )

    # eAPI settings
    EAPI_PORT = _env_int('EAPI_PORT', 443)
    EAPI_USE_SSL = _env_bool('EAPI_USE_SSL', True)
    EAPI_TIMEOUT = _env_int('EAPI_TIMEOUT', 30)
    # Lab switches run self-signed certificates; only verify in production
    SSL_VERIFY = _env_bool('SSL_VERIFY', APP_ENV == 'production')

    @classmethod
    def validate(cls) -> List[str]:
        """Validate configuration and return list of errors."""
        errors = []

        if not 0 < cls.PORT < 65536:
            errors.append("PORT must be an integer between 1 and 65535")

        if not 0 < cls.EAPI_PORT < 65536:
            errors.append("EAPI_PORT must be an integer between 1 and 65535")

        if cls.EAPI_TIMEOUT <= 0:
            errors.append("EAPI_TIMEOUT must be a positive number of seconds")

        if cls.LOG_LEVEL not in VALID_LOG_LEVELS:
            errors.append(
                f"LOG_LEVEL '{cls.LOG_LEVEL}' is invalid. "
                f"Must be one of: {', '.join(sorted(VALID_LOG_LEVELS))}"
            )

        if not cls.SWITCHES_CONFIG:
            errors.append("SWITCHES_CONFIG must point to a JSON file")

        return errors

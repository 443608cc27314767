# ============================================================================
# CONTEXT - APPLICATION CONFIGURATION
# ============================================================================
# STATUS: Core Infrastructure - Configuration Management
# PURPOSE: Environment-based defaults for opening a STAC catalog and dispatching searches
# EXPORTS: AppConfig, get_app_config, validate_configuration
# DEPENDENCIES: pydantic-settings, pydantic
# SOURCE: Environment variables, optional .env file
# PATTERNS: Singleton pattern for config
# ============================================================================

"""
Application Configuration Module

Provides the defaults used by ``stac_search.stac()`` and ``STACClient``:

Environment Variables:
    Optional:
    - STAC_API_BASE_URL: Catalog root URL (no default)
    - STAC_API_VERSION: STAC API version spoken by the catalog (default: "1.0.0")
    - STAC_HTTP_TIMEOUT: HTTP timeout in seconds (default: 30)
    - STAC_DEFAULT_VERB: HTTP verb for new queries, GET or POST (default: "GET")
    - STAC_USER_AGENT: User-Agent header sent to the catalog
    - DEBUG_LOGGING: "true" for DEBUG level logging

Usage:
    from config import get_app_config

    config = get_app_config()
    q = stac(config.stac_api_base_url)
"""

import logging
from typing import Optional
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator

logger = logging.getLogger(__name__)

# ============================================================================
# Application Configuration
# ============================================================================

class AppConfig(BaseSettings):
    """
    Application-wide configuration loaded from environment variables.

    Attributes:
        stac_api_base_url: Catalog root URL
        stac_api_version: STAC API version of the catalog
        stac_http_timeout: HTTP timeout in seconds
        stac_default_verb: Verb assigned to freshly opened queries
        stac_user_agent: User-Agent header for catalog requests
        debug_logging: Enable DEBUG level logging
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    stac_api_base_url: Optional[str] = Field(default=None, description="STAC catalog root URL")
    stac_api_version: str = Field(default="1.0.0", description="STAC API version")
    stac_http_timeout: float = Field(default=30.0, gt=0, description="HTTP timeout in seconds")
    stac_default_verb: str = Field(default="GET", description="Default HTTP verb (GET or POST)")
    stac_user_agent: str = Field(default="stac-search-client", description="User-Agent header")
    debug_logging: bool = Field(default=False, description="Enable DEBUG logging")

    @field_validator('stac_api_version')
    @classmethod
    def validate_api_version(cls, v: str) -> str:
        """Ensure the version parses as a semantic version."""
        from stac_search.version import APIVersion
        APIVersion.parse(v)
        return v

    @field_validator('stac_default_verb')
    @classmethod
    def validate_default_verb(cls, v: str) -> str:
        """Only GET and POST reach the search endpoint."""
        verb = v.upper()
        if verb not in ("GET", "POST"):
            raise ValueError(f"STAC_DEFAULT_VERB must be GET or POST, got '{v}'")
        return verb

    @field_validator('stac_api_base_url')
    @classmethod
    def strip_base_url(cls, v: Optional[str]) -> Optional[str]:
        """Drop trailing slashes so endpoint paths join cleanly."""
        if v is None:
            return None
        v = v.strip().rstrip('/')
        return v or None


@lru_cache(maxsize=1)
def get_app_config() -> AppConfig:
    """
    Get singleton application configuration instance.

    Returns:
        AppConfig: Validated configuration object

    Raises:
        ValidationError: If an environment variable holds an invalid value
    """
    return AppConfig()


# ============================================================================
# Configuration Validation
# ============================================================================

def validate_configuration() -> bool:
    """
    Validate configuration on application startup.

    Returns:
        bool: True if configuration is valid

    Raises:
        Exception: If configuration validation fails
    """
    try:
        config = get_app_config()
        logger.info("Configuration validation:")
        logger.info(f"  STAC API URL: {config.stac_api_base_url}")
        logger.info(f"  STAC API version: {config.stac_api_version}")
        logger.info(f"  HTTP timeout: {config.stac_http_timeout}s")
        logger.info(f"  Default verb: {config.stac_default_verb}")
        logger.info(f"  Debug logging: {config.debug_logging}")

        if not config.stac_api_base_url:
            raise ValueError("STAC_API_BASE_URL is not set")

        return True

    except Exception as e:
        logger.error(f"❌ Configuration validation failed: {e}")
        raise


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    validate_configuration()

import logging
from pydantic_settings import BaseSettings
from typing import List, Optional

logger = logging.getLogger(__name__)

PLACEHOLDER_KEY_VALUES = {"", "your-google-maps-key", "your-pexels-key", "your-unsplash-key"}

# Provider name (as used in IMAGE_PROVIDER_ORDER) -> setting holding its key
PROVIDER_KEY_SETTINGS = {
    "google_places": "GOOGLE_MAPS_API_KEY",
    "pexels": "PEXELS_API_KEY",
    "unsplash": "UNSPLASH_ACCESS_KEY",
}

class Settings(BaseSettings):
    # Image provider credentials (each one is optional)
    GOOGLE_MAPS_API_KEY: Optional[str] = None
    PEXELS_API_KEY: Optional[str] = None
    UNSPLASH_ACCESS_KEY: Optional[str] = None

    # Cascade
    IMAGE_PROVIDER_ORDER: List[str] = ["google_places", "pexels", "unsplash"]
    IMAGE_PROVIDER_TIMEOUT_SECONDS: float = 8.0
    PICSUM_ENABLED: bool = True
    MAX_CONCURRENT_IMAGE_RESOLUTIONS: int = 10

    # API Configuration
    API_VERSION: str = "1.0.0"
    DEBUG_MODE: bool = False
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    model_config = {"env_file": ".env", "case_sensitive": True, "extra": "ignore"}

# Global settings instance
settings = Settings()

def get_settings() -> Settings:
    """Get the global settings instance"""
    return settings

def is_key_configured(value: Optional[str]) -> bool:
    """A key counts as configured when it is set and not a template value."""
    return bool(value) and value.strip() not in PLACEHOLDER_KEY_VALUES

def validate_settings(current: Optional[Settings] = None) -> List[str]:
    """Report which image providers are usable.

    Missing keys are expected: they only disable the matching provider, so this
    never fails. Returns the configured provider names in priority order.
    """
    current = current or settings

    configured = []
    for name in current.IMAGE_PROVIDER_ORDER:
        if name not in PROVIDER_KEY_SETTINGS:
            logger.warning(f"Unknown image provider in IMAGE_PROVIDER_ORDER: {name}")
            continue
        if is_key_configured(getattr(current, PROVIDER_KEY_SETTINGS[name])):
            configured.append(name)
        else:
            logger.info(f"Image provider '{name}' disabled: no API key configured")

    if not configured:
        logger.warning("No image provider keys configured; every image will be a placeholder")

    return configured

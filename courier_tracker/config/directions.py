"""
Configuration for the OpenRouteService integration (geocoding + directions).
"""

import os


class DirectionsConfig:
    """Configuration class for OpenRouteService integration."""

    API_KEY: str = os.getenv("OPENROUTE_API_KEY", "")
    BASE_URL: str = os.getenv("OPENROUTE_BASE_URL", "https://api.openrouteservice.org").rstrip("/")
    PROFILE: str = os.getenv("DIRECTIONS_PROFILE", "driving-car")

    TIMEOUT_SECONDS: float = float(os.getenv("DIRECTIONS_TIMEOUT", "10.0"))
    MAX_RETRIES: int = int(os.getenv("DIRECTIONS_MAX_RETRIES", "3"))
    RETRY_DELAY_SECONDS: float = float(os.getenv("DIRECTIONS_RETRY_DELAY", "1.0"))

    @classmethod
    def has_api_key(cls) -> bool:
        return bool(cls.API_KEY)

    @classmethod
    def get_config_dict(cls) -> dict:
        """Return configuration as dictionary, API key masked (for logging)."""
        return {
            "API_KEY": "***" if cls.API_KEY else "",
            "BASE_URL": cls.BASE_URL,
            "PROFILE": cls.PROFILE,
            "TIMEOUT_SECONDS": cls.TIMEOUT_SECONDS,
            "MAX_RETRIES": cls.MAX_RETRIES,
            "RETRY_DELAY_SECONDS": cls.RETRY_DELAY_SECONDS,
        }


directions_config = DirectionsConfig()

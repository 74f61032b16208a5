"""
Configuration module for the courier tracker backend.

Centralizes runtime settings: simulation speed, server binding, static client
and registry eviction. Values come from environment variables (a local `.env`
file is loaded first).
"""

import os

from dotenv import load_dotenv

load_dotenv()


class Config:
    """Application configuration loaded from environment variables."""

    # Simulation
    SIMULATION_SPEED: float = float(os.getenv("SIMULATION_SPEED", "20"))

    # Server
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "3000"))
    CORS_ORIGINS: str = os.getenv("CORS_ORIGINS", "*")
    CLIENT_DIST_DIR: str = os.getenv("CLIENT_DIST_DIR", os.path.join("client", "dist"))
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO"

    # Registry: 0 keeps arrived couriers forever
    ARRIVED_TTL_SECONDS: float = float(os.getenv("ARRIVED_TTL_SECONDS", "0"))

    @classmethod
    def get_cors_origins(cls) -> list:
        origins = [o.strip() for o in cls.CORS_ORIGINS.split(",") if o.strip()]
        return origins or ["*"]

    @classmethod
    def get_config_dict(cls) -> dict:
        """Return configuration as dictionary (for debugging)."""
        return {
            "SIMULATION_SPEED": cls.SIMULATION_SPEED,
            "HOST": cls.HOST,
            "PORT": cls.PORT,
            "CORS_ORIGINS": cls.get_cors_origins(),
            "CLIENT_DIST_DIR": cls.CLIENT_DIST_DIR,
            "LOG_LEVEL": cls.LOG_LEVEL,
            "ARRIVED_TTL_SECONDS": cls.ARRIVED_TTL_SECONDS,
        }


# Global configuration instance
config = Config()

__all__ = ["Config", "config"]

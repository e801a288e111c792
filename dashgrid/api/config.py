"""
config.py — Environment configuration for the layout API and engine.

Settings are plain environment variables, optionally loaded from a .env
file at the repository root.
"""

import os
from functools import lru_cache
from pathlib import Path

# Load .env file if it exists
def _load_dotenv():
    env_path = Path(__file__).parent.parent.parent / ".env"
    if env_path.exists():
        with open(env_path) as f:
            for line in f:
                line = line.strip()
                if line and not line.startswith("#") and "=" in line:
                    key, value = line.split("=", 1)
                    key = key.strip()
                    value = value.strip()
                    if key and value and key not in os.environ:
                        os.environ[key] = value

_load_dotenv()


class Settings:
    """Application settings loaded from environment variables."""

    def __init__(self):
        self.app_name: str = "dashgrid"
        self.app_version: str = "0.1.0"
        self.api_prefix: str = "/api"

        # Layout engine
        self.grid_columns: int = int(os.environ.get("DASHGRID_GRID_COLUMNS", "12"))
        self.resolver_max_iterations: int = int(os.environ.get("DASHGRID_RESOLVER_MAX_ITERATIONS", "100"))
        self.slot_row_cap: int = int(os.environ.get("DASHGRID_SLOT_ROW_CAP", "200"))

        # Server settings
        self.host: str = os.environ.get("HOST", "0.0.0.0")
        self.port: int = int(os.environ.get("PORT", "8000"))
        self.debug: bool = os.environ.get("DEBUG", "false").lower() == "true"
        self.log_level: str = os.environ.get("LOG_LEVEL", "INFO").upper()

        # CORS settings
        self.cors_origins: list = os.environ.get(
            "CORS_ORIGINS",
            "http://localhost:3000,http://localhost:5173,http://127.0.0.1:3000,http://127.0.0.1:5173"
        ).split(",")


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()

"""
Service settings read from the environment.

A ``.env`` file anywhere above the working directory is loaded first, so
local overrides work without exporting variables.
"""

import os
from functools import lru_cache
from typing import Optional

from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, Field

# Load .env file (walks up directories to find it)
load_dotenv(find_dotenv())


class Settings(BaseModel):
    APP_NAME: str = "pgxrisk"
    LOG_LEVEL: str = "INFO"

    # Remote explanation service; enrichment is skipped when unset
    EXPLANATION_API_URL: Optional[str] = None
    EXPLANATION_TIMEOUT_SECONDS: float = Field(30.0, gt=0)
    EXPLANATION_RETRY_DELAY_SECONDS: float = Field(3.0, ge=0)
    EXPLANATION_MAX_RETRIES: int = Field(1, ge=0)

    MAX_UPLOAD_BYTES: int = Field(5 * 1024 * 1024, gt=0)

    # JSON file replacing the built-in drug-gene rules
    PGX_RULES_PATH: Optional[str] = None

    @classmethod
    def from_env(cls) -> "Settings":
        values = {}
        for name in cls.model_fields:
            raw = os.environ.get(name)
            if raw is not None and raw != "":
                values[name] = raw
        return cls(**values)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Process-wide settings. Call ``get_settings.cache_clear()`` after changing the environment."""
    return Settings.from_env()

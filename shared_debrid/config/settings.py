import os
from functools import lru_cache
from typing import Literal

from pydantic import BaseModel, Field

from shared_debrid.services.lease_policy import DEFAULT_FILE_NAME, DEFAULT_SESSION_MINUTES


class Settings(BaseModel):
    SHARED_DEBRID_STORE: Literal["gist", "memory"] = "gist"
    SHARED_DEBRID_FILE_NAME: str = Field(default=DEFAULT_FILE_NAME, min_length=1)
    SHARED_DEBRID_SESSION_MINUTES: float = Field(default=DEFAULT_SESSION_MINUTES, ge=0)
    SHARED_DEBRID_GITHUB_API_URL: str = "https://api.github.com"
    SHARED_DEBRID_STORE_TIMEOUT_SEC: float = Field(default=10.0, gt=0)

    @classmethod
    def from_env(cls) -> "Settings":
        names = cls.model_fields.keys()
        # unset variables fall back to the field defaults
        return cls.model_validate({name: os.environ[name] for name in names if name in os.environ})


@lru_cache
def get_settings() -> Settings:
    return Settings.from_env()

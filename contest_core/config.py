from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ContestCoreSettings(BaseSettings):
    # Judge backend
    api_base_url: str = "http://localhost:3000"
    request_timeout: float = Field(10.0, gt=0, description="Seconds per HTTP request")

    # Timer cadence shared by countdowns and status re-evaluation
    tick_period: float = Field(1.0, gt=0, description="Seconds between ticks")

    # Where unauthenticated registration attempts are sent
    login_path: str = "/login"

    model_config = SettingsConfigDict(
        env_prefix="CONTEST_CORE_",
        # Let settings read from a project .env if present (local dev).
        env_file=".env",
        extra="ignore",
    )


@lru_cache(maxsize=1)
def get_settings() -> ContestCoreSettings:
    return ContestCoreSettings()

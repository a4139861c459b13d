from typing import List

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./change_requests.db"
    SERVER_PORT: int = 2022
    LOG_LEVEL: str = "INFO"

    # Seconds a SQLite connection waits for another writer's lock
    SQLITE_BUSY_TIMEOUT: float = 30.0

    # Comma separated list of allowed frontend origins
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    # ITIL integration. Leave ITIL_API_URL empty to use the simulated gateway.
    ITIL_API_URL: str = ""
    ITIL_API_TOKEN: str = ""
    ITIL_API_TIMEOUT: float = 10.0

    RATE_LIMIT_DEFAULT: str = "100/minute"
    RATE_LIMIT_ACTIONS: str = "30/minute"

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    @model_validator(mode="after")
    def _check_timeouts(self) -> "Settings":
        # The ITIL call runs while the lifecycle holds the write lock
        if self.ITIL_API_TIMEOUT >= self.SQLITE_BUSY_TIMEOUT:
            raise ValueError(
                "ITIL_API_TIMEOUT must be lower than SQLITE_BUSY_TIMEOUT."
            )
        return self

    @property
    def cors_origin_list(self) -> List[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

settings = Settings()

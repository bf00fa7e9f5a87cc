from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    APP_ENV: str = "development"
    LOG_LEVEL: str = "INFO"
    # "text" or "json". Production always logs JSON.
    LOG_FORMAT: str = "text"

    # Comma-separated allowed origins, or "*" to allow all.
    # Example: "https://myapp.com,https://api.myapp.com"
    CORS_ORIGINS: str = "*"

    # Defaults applied to every user the registry creates.
    DEFAULT_QUIET_HOURS_START: str = "22:00"
    DEFAULT_QUIET_HOURS_END: str = "07:00"
    DEFAULT_MAX_DAILY_INTERVENTIONS: int = 3
    DEFAULT_MAX_FEEDBACK_PER_DAY: int = 5

    # Feedback history kept per user, and how much of it each context sees.
    FEEDBACK_HISTORY_LIMIT: int = Field(default=50, ge=1)
    FEEDBACK_CONTEXT_WINDOW: int = Field(default=10, ge=1)

    # Users kept in memory; the least recently used idle user is dropped beyond this.
    REGISTRY_MAX_USERS: int = Field(default=10_000, ge=1)

    @property
    def cors_origins_list(self) -> list[str]:
        if self.CORS_ORIGINS.strip() == "*":
            return ["*"]
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]


def get_settings() -> Settings:
    return Settings()

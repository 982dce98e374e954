"""
Consumer configuration
Immutable settings loaded once at startup and passed to each component
"""

import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field

REQUIRED_ENV_VARS = {
    "ZENDESK_SUBDOMAIN": "subdomain",
    "ZENDESK_EMAIL": "email",
    "ZENDESK_API_TOKEN": "api_token",
    "DATABASE_URL": "database_url",
}

TRUTHY = ("true", "1", "yes")


class ConfigurationError(ValueError):
    """Raised when required configuration is missing or malformed"""

    def __init__(self, message: str, missing: Optional[list[str]] = None):
        super().__init__(message)
        self.missing = missing or []


def normalize_database_url(url: str) -> str:
    """Accept Heroku-style postgres:// URLs"""
    if url.startswith("postgres://"):
        return "postgresql://" + url[len("postgres://"):]
    return url


class ConsumerConfig(BaseModel):
    """Ticket view consumer settings"""
    model_config = ConfigDict(frozen=True)

    subdomain: str
    email: str
    api_token: str = Field(repr=False)
    database_url: str = Field(repr=False)
    interval_minutes: float = Field(5, gt=0)
    force_refresh: bool = False
    lookback_hours: int = Field(24, gt=0)
    request_timeout: float = Field(30.0, gt=0)
    database_sslmode: Optional[str] = None
    create_schema: bool = True

    @property
    def base_url(self) -> str:
        return f"https://{self.subdomain}.zendesk.com"

    @property
    def interval_seconds(self) -> float:
        return self.interval_minutes * 60

    @classmethod
    def from_env(cls, env: Optional[dict] = None, dotenv: bool = True) -> "ConsumerConfig":
        """
        Build configuration from environment variables.

        Args:
            env: Mapping to read instead of os.environ (mainly for tests)
            dotenv: Load a .env file into os.environ first

        Raises:
            ConfigurationError: if a required variable is missing or a value
                cannot be parsed
        """
        if env is None:
            if dotenv:
                load_dotenv()
            env = os.environ

        missing = [name for name in REQUIRED_ENV_VARS if not env.get(name)]
        if missing:
            raise ConfigurationError(
                f"Missing required environment variables: {', '.join(missing)}",
                missing=missing,
            )

        values = {field: env[name] for name, field in REQUIRED_ENV_VARS.items()}
        values["database_url"] = normalize_database_url(values["database_url"])

        try:
            values["interval_minutes"] = float(env.get("CONSUMER_REFRESH_INTERVAL_MINUTES", "5"))
            values["lookback_hours"] = int(env.get("CONSUMER_LOOKBACK_HOURS", "24"))
            values["request_timeout"] = float(env.get("ZENDESK_TIMEOUT_SECONDS", "30"))
        except ValueError as e:
            raise ConfigurationError(f"Invalid numeric setting: {e}") from e

        values["force_refresh"] = env.get("FORCE_REFRESH", "false").lower() == "true"
        values["create_schema"] = env.get("CONSUMER_CREATE_SCHEMA", "true").lower() in TRUTHY
        values["database_sslmode"] = env.get("DATABASE_SSLMODE") or None

        try:
            return cls(**values)
        except ValueError as e:
            raise ConfigurationError(str(e)) from e

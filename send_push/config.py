"""
Configuration for send-push.

Values come from the environment (or a local .env file). Supabase's own
variable names (SUPABASE_URL, SUPABASE_SERVICE_ROLE_KEY) are accepted as aliases.
"""
from functools import lru_cache

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        populate_by_name=True,
    )

    # Record store (PostgREST)
    store_url: str = Field("", validation_alias=AliasChoices("STORE_URL", "SUPABASE_URL"))
    store_key: str = Field("", validation_alias=AliasChoices("STORE_KEY", "SUPABASE_SERVICE_ROLE_KEY"))

    # Raw service account JSON: client_email, private_key, project_id
    service_account_json: str = Field("", validation_alias=AliasChoices("SERVICE_ACCOUNT_JSON"))

    # Shared secret for the inbound trigger; store_key is used when empty
    webhook_secret: str = Field("", validation_alias=AliasChoices("WEBHOOK_SECRET"))

    log_level: str = Field("INFO", validation_alias=AliasChoices("LOG_LEVEL"))

    @field_validator("log_level", mode="before")
    @classmethod
    def _known_log_level(cls, value):
        # Unknown names fall back to INFO so a typo can't stop the app importing
        level = str(value or "").strip().upper()
        return level if level in LOG_LEVELS else "INFO"

    @property
    def inbound_secret(self) -> str:
        return self.webhook_secret or self.store_key


@lru_cache()
def get_settings() -> Settings:
    return Settings()

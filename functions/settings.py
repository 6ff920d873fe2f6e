from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_REVISION = "2024-10-15"


class Settings(BaseSettings):
    """Subscribe function settings loaded from environment."""

    model_config = SettingsConfigDict(case_sensitive=False, extra="ignore")

    # Service
    service_name: str = "subscribe"
    log_level: str = "INFO"

    # Klaviyo
    klaviyo_private_api_key: str = ""
    klaviyo_api_key_secret_id: str = ""  # Secrets Manager id/ARN, used when the key is not set directly
    klaviyo_list_id: str = ""
    klaviyo_revision: str = DEFAULT_REVISION
    klaviyo_base_url: str = "https://a.klaviyo.com/api"

    # Value of the "source" profile property
    profile_source: str = "cashback.sandstone.nl"

    @field_validator("*", mode="before")
    @classmethod
    def strip_strings(cls, v):
        if isinstance(v, str):
            return v.strip()
        return v

    @field_validator("klaviyo_revision", mode="after")
    @classmethod
    def default_revision(cls, v: str) -> str:
        return v or DEFAULT_REVISION

    @field_validator("klaviyo_base_url", mode="after")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    def missing(self) -> dict[str, bool]:
        """Flag each required key that has no value."""
        return {
            "KLAVIYO_PRIVATE_API_KEY": not self.klaviyo_private_api_key,
            "KLAVIYO_LIST_ID": not self.klaviyo_list_id,
        }

    @property
    def is_complete(self) -> bool:
        return not any(self.missing().values())

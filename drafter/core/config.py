from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Dropbox access uses a long-lived refresh token exchanged for short-lived
    access tokens; the three DROPBOX_* secrets must all be present before the
    first remote call. OPENAI_API_KEY is required to build the analyzer.

    Runs can take several minutes (dozens of photos downloaded, then one
    vision call), so PIPELINE_TIMEOUT_SECONDS is minutes-scale by default.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Dropbox: refresh-token grant.
    dropbox_refresh_token: str = ""
    dropbox_client_id: str = ""
    dropbox_client_secret: str = ""

    # Dropbox endpoints. Overridable for regional proxies and tests.
    dropbox_token_url: str = "https://api.dropboxapi.com/oauth2/token"
    dropbox_api_url: str = "https://api.dropboxapi.com/2"
    dropbox_content_url: str = "https://content.dropboxapi.com/2"
    http_timeout_seconds: float = 60.0

    # Analyzer
    openai_api_key: str = ""
    openai_model: str = "gpt-5"
    openai_max_completion_tokens: int = 1000

    # Transfer
    download_concurrency: int = 4
    workspace_root: Optional[str] = None

    # Result write-back
    draft_subfolder: str = "Portal Draft"
    draft_filename: str = "portal-draft.txt"

    # Whole-run bound for the draft endpoint.
    pipeline_timeout_seconds: float = 300.0

    # Property tokens issued by POST /drafts/tokens
    token_ttl_days: int = 7

    # App
    debug: bool = True

    @field_validator("download_concurrency", mode="before")
    @classmethod
    def clamp_concurrency(cls, v: int) -> int:
        return max(1, int(v))

    def missing_secrets(self) -> list[str]:
        """Return the env names of required secrets that are blank."""
        required = {
            "DROPBOX_REFRESH_TOKEN": self.dropbox_refresh_token,
            "DROPBOX_CLIENT_ID": self.dropbox_client_id,
            "DROPBOX_CLIENT_SECRET": self.dropbox_client_secret,
            "OPENAI_API_KEY": self.openai_api_key,
        }
        return [name for name, value in required.items() if not value]


def get_settings() -> Settings:
    return Settings()

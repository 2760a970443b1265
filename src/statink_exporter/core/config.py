from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from statink_exporter.exporters.base.errors import ConfigurationError


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # stat.ink
    stat_ink_api_key: str | None = Field(default=None, repr=False)
    stat_ink_base_url: str = "https://stat.ink"
    upload_mode: str = "Manual"

    # http
    http_timeout_s: float = 30.0
    http_connect_timeout_s: float = 10.0

    log_level: str = "INFO"

    # -----------------------------
    # Required-key helpers
    # -----------------------------

    def require_stat_ink_api_key(self) -> str:
        if not self.stat_ink_api_key:
            raise ConfigurationError(
                "STAT_INK_API_KEY is not set. Set it in the environment or .env file."
            )
        return self.stat_ink_api_key


settings = Settings()

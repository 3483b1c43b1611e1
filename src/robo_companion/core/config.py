from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _split_keys(value: str | None) -> list[str]:
    if not value:
        return []
    return [k.strip() for k in value.split(",") if k.strip()]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # robotevents
    robotevents_base_url: str = "https://www.robotevents.com/api/v2"
    robotevents_world_skills_url: str = "https://www.robotevents.com/api"
    robotevents_api_keys: str | None = Field(default=None, repr=False)
    robotevents_team_browser_keys: str | None = Field(default=None, repr=False)

    # recf events
    recf_base_url: str = "https://api.recf.org/v1"
    recf_api_keys: str | None = Field(default=None, repr=False)

    # -----------------------------
    # Pacing / key rotation
    # -----------------------------
    request_delay_s: float = 0.1
    calls_before_rotation: int = 20
    key_reset_s: float = 3600.0
    max_cycles_before_fallback: int = 2
    max_rate_limit_retries: int = 5
    default_retry_after_s: float = 5.0

    team_cache_ttl_s: float = 24 * 60 * 60
    failure_check_interval_s: float = 30.0

    default_program: str = "VEX V5 Robotics Competition"
    default_season_id: int = 173
    recf_default_season_id: int = 182

    # Developer mode
    developer_mode: bool = False
    dev_live_event_id: int | None = None
    dev_live_event_simulation: bool = False

    log_level: str = "INFO"

    # -----------------------------
    # Key helpers
    # -----------------------------

    def robotevents_key_list(self) -> list[str]:
        return _split_keys(self.robotevents_api_keys)

    def robotevents_team_browser_key_list(self) -> list[str]:
        return _split_keys(self.robotevents_team_browser_keys)

    def recf_key_list(self) -> list[str]:
        return _split_keys(self.recf_api_keys)

    def require_robotevents_keys(self) -> list[str]:
        keys = self.robotevents_key_list() or self.robotevents_team_browser_key_list()
        if not keys:
            raise RuntimeError(
                "ROBOTEVENTS_API_KEYS is not set. Set it in the environment or .env file."
            )
        return keys

    def live_event_override(self) -> int | None:
        """Forced live event id, only honoured in developer mode."""
        if not self.developer_mode:
            return None
        return self.dev_live_event_id


settings = Settings()

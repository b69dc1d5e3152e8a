import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv


class ConfigError(Exception):
    pass


def _flag(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in ("1", "true", "yes", "on")


def _required(env, name: str) -> str:
    value = env.get(name)
    if not value:
        raise ConfigError(f"{name} is not set")
    return value


@dataclass(frozen=True)
class Settings:
    """Process-wide settings, read once at startup and never mutated."""

    bungie_client_id: str
    bungie_api_key: str
    redirect_uri: str = "http://localhost:3000/callback"
    bungie_client_secret: Optional[str] = None
    bungie_base_url: str = "https://www.bungie.net"
    legacy_display_name: bool = False

    airtable_api_key: Optional[str] = None
    airtable_base_id: Optional[str] = None
    airtable_table_name: Optional[str] = None
    airtable_base_url: str = "https://api.airtable.com"

    port: int = 3000
    http_timeout: float = 10.0
    log_level: str = "INFO"

    discord_token: Optional[str] = None
    command_prefix: str = "!"

    @property
    def record_store_enabled(self) -> bool:
        return bool(
            self.airtable_api_key and self.airtable_base_id and self.airtable_table_name
        )

    @classmethod
    def from_env(cls, env=None, dotenv: bool = True) -> "Settings":
        if env is None:
            if dotenv:
                load_dotenv()
            env = os.environ

        try:
            port = int(env.get("PORT", 3000))
            http_timeout = float(env.get("HTTP_TIMEOUT_SECONDS", 10))
        except ValueError as e:
            raise ConfigError(f"Invalid numeric setting: {e}") from e

        return cls(
            bungie_client_id=_required(env, "BUNGIE_CLIENT_ID"),
            bungie_api_key=_required(env, "BUNGIE_API_KEY"),
            redirect_uri=env.get("REDIRECT_URI") or cls.redirect_uri,
            bungie_client_secret=env.get("BUNGIE_CLIENT_SECRET") or None,
            bungie_base_url=(env.get("BUNGIE_BASE_URL") or cls.bungie_base_url).rstrip("/"),
            legacy_display_name=_flag(env.get("BUNGIE_LEGACY_DISPLAY_NAME")),
            airtable_api_key=env.get("AIRTABLE_API_KEY") or None,
            airtable_base_id=env.get("AIRTABLE_BASE_ID") or None,
            airtable_table_name=env.get("AIRTABLE_TABLE_NAME") or None,
            airtable_base_url=(env.get("AIRTABLE_BASE_URL") or cls.airtable_base_url).rstrip("/"),
            port=port,
            http_timeout=http_timeout,
            log_level=(env.get("LOG_LEVEL") or "INFO").upper(),
            discord_token=env.get("DISCORD_TOKEN") or None,
            command_prefix=env.get("COMMAND_PREFIX") or "!",
        )

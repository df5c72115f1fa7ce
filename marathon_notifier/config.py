"""Configuration management with Pydantic Settings + optional YAML."""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_ICON_URL = "http://i.imgur.com/5FJDbGz.png"


class SlackConfig(BaseModel):
    """Read-only delivery settings shared by the renderer and dispatcher."""

    model_config = ConfigDict(frozen=True)

    webhook_url: str = ""
    channel: str = "#marathon"
    bot_name: str = "Marathon Event Bot"
    environment: str = "Unknown"
    region: str = "Unknown"
    icon_url: str = DEFAULT_ICON_URL
    # project name -> override webhook URL
    projects: dict[str, str] = Field(default_factory=dict)
    dedupe_projects: bool = True
    timeout: float = 10.0


class ListenerConfig(BaseModel):
    bind: str = "0.0.0.0"
    port: int = 8421
    path: str = "/events"


class StreamConfig(BaseModel):
    marathon_url: str = "http://localhost:8080"
    reconnect_delay: float = 5.0


class EventsConfig(BaseModel):
    # Empty means every event type is forwarded
    event_types: list[str] = Field(default_factory=list)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="MARATHON_NOTIFIER_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    slack: SlackConfig = Field(default_factory=SlackConfig)
    listener: ListenerConfig = Field(default_factory=ListenerConfig)
    stream: StreamConfig = Field(default_factory=StreamConfig)
    events: EventsConfig = Field(default_factory=EventsConfig)
    log_level: str = "INFO"
    log_json: bool = False


def get_config_dir() -> Path:
    env = os.environ.get("MARATHON_NOTIFIER_CONFIG_DIR")
    if env:
        return Path(env)
    if sys.platform == "win32":
        base = Path(os.environ.get("APPDATA", Path.home() / "AppData" / "Roaming"))
        return base / "marathon-notifier"
    xdg = os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config")
    return Path(xdg) / "marathon-notifier"


def load_settings(config_path: str | Path | None = None) -> Settings:
    """Load settings from env vars, optionally overlaying a YAML config."""
    yaml_data: dict[str, Any] = {}

    if config_path is None:
        config_path = os.environ.get("MARATHON_NOTIFIER_CONFIG")
    if config_path is None:
        default = get_config_dir() / "config.yaml"
        if default.exists():
            config_path = default

    if config_path is not None:
        path = Path(config_path)
        if path.exists():
            with open(path) as f:
                yaml_data = yaml.safe_load(f) or {}

    # Init kwargs win over env vars; fields absent from YAML come from the environment
    return Settings(**yaml_data)

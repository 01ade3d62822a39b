"""Runtime settings.

Resolution order, later wins:
 - defaults below
 - optional YAML file (``--config`` or ``A11Y_MCP_CONFIG_FILE``)
 - ``A11Y_MCP_<FIELD>`` environment variables or ``.env`` entries
"""
from __future__ import annotations
import os
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional, Tuple, Type, Union

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

ENV_PREFIX = "A11Y_MCP_"
CONFIG_ENV_VAR = ENV_PREFIX + "CONFIG_FILE"

# axe-core build injected into the page when no local copy is configured.
DEFAULT_AXE_SOURCE = "https://cdn.jsdelivr.net/npm/axe-core@4.10.2/axe.min.js"

LogLevel = Literal["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="forbid",
    )

    viewport_width: int = Field(1280, ge=1)
    viewport_height: int = Field(800, ge=1)
    navigation_timeout_ms: int = Field(30000, ge=1)
    # Navigation counts as settled once at most this many requests are in
    # flight for network_idle_ms (Puppeteer's "networkidle2").
    network_idle_connections: int = Field(2, ge=0)
    network_idle_ms: int = Field(500, ge=0)
    headless: bool = True
    # from the environment as JSON: A11Y_MCP_BROWSER_ARGS='["--no-sandbox"]'
    browser_args: List[str] = ["--no-sandbox", "--disable-setuid-sandbox"]
    axe_source: str = DEFAULT_AXE_SOURCE
    server_name: str = "a11y-accessibility"
    server_version: str = "1.0.0"
    log_level: LogLevel = "INFO"
    # time in-flight audits get to unwind after SIGINT/SIGTERM before the process exits
    shutdown_grace_ms: int = Field(2000, ge=0)
    config_file: Optional[Path] = None

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_level(cls, value: Any) -> Any:
        return value.upper() if isinstance(value, str) else value

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: Type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        # YAML values arrive as init kwargs; the environment outranks them.
        return env_settings, dotenv_settings, init_settings, file_secret_settings


def _read_yaml(path: Path) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a mapping, got {type(data).__name__}")
    return data


def load_settings(config_file: Optional[Union[str, Path]] = None) -> Settings:
    """Build :class:`Settings` from defaults, an optional YAML file and the environment."""
    path = config_file or os.environ.get(CONFIG_ENV_VAR)
    if not path:
        return Settings()
    values = _read_yaml(Path(path))
    values["config_file"] = Path(path)
    return Settings(**values)


__all__ = ["Settings", "load_settings", "DEFAULT_AXE_SOURCE", "ENV_PREFIX", "CONFIG_ENV_VAR"]

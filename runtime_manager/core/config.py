"""
Configuration for the runtime version manager.

Values come from environment variables with per-user platform directories as
the fallback for the on-disk locations.
"""
from __future__ import annotations

import os
from pathlib import Path
from typing import Mapping, Optional

from platformdirs import user_config_path, user_data_path
from pydantic import BaseModel, Field

from runtime_manager.core.errors import ConfigError

APP_NAME = "AmbientCli"
APP_AUTHOR = "Ambient"

DATA_DIR_ENV_VAR = "RUNTIME_MANAGER_DATA_DIR"
CONFIG_DIR_ENV_VAR = "RUNTIME_MANAGER_CONFIG_DIR"
CATALOG_URL_ENV_VAR = "RUNTIME_MANAGER_CATALOG_URL"
BUILDS_NAMESPACE_ENV_VAR = "RUNTIME_MANAGER_BUILDS_NAMESPACE"
HTTP_TIMEOUT_ENV_VAR = "RUNTIME_MANAGER_HTTP_TIMEOUT"

DEFAULT_CATALOG_URL = "https://storage.googleapis.com/storage/v1/b/ambient-artifacts/o"
DEFAULT_BUILDS_NAMESPACE = "ambient-builds"
DEFAULT_HTTP_TIMEOUT = 60.0


class ManagerConfig(BaseModel):
    data_dir: Path = Field(description="Root directory for installed runtimes.")
    config_dir: Path = Field(description="Directory holding settings.json.")
    catalog_url: str = Field(
        default=DEFAULT_CATALOG_URL,
        description="Object-listing endpoint of the artifact bucket.",
    )
    builds_namespace: str = Field(
        default=DEFAULT_BUILDS_NAMESPACE,
        description="Top-level path segment under which builds are published.",
    )
    http_timeout: Optional[float] = Field(
        default=DEFAULT_HTTP_TIMEOUT,
        description="Timeout in seconds for catalog and download requests; None disables it.",
    )

    @property
    def runtimes_dir(self) -> Path:
        return self.data_dir / "runtimes"

    @property
    def settings_path(self) -> Path:
        return self.config_dir / "settings.json"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ManagerConfig":
        env = os.environ if environ is None else environ

        data_dir = env.get(DATA_DIR_ENV_VAR)
        config_dir = env.get(CONFIG_DIR_ENV_VAR)
        values = {
            "data_dir": Path(data_dir).expanduser() if data_dir else user_data_path(APP_NAME, APP_AUTHOR),
            "config_dir": Path(config_dir).expanduser() if config_dir else user_config_path(APP_NAME, APP_AUTHOR),
        }
        if env.get(CATALOG_URL_ENV_VAR):
            values["catalog_url"] = env[CATALOG_URL_ENV_VAR]
        if env.get(BUILDS_NAMESPACE_ENV_VAR):
            values["builds_namespace"] = env[BUILDS_NAMESPACE_ENV_VAR].strip("/")
        if env.get(HTTP_TIMEOUT_ENV_VAR):
            values["http_timeout"] = _parse_timeout(env[HTTP_TIMEOUT_ENV_VAR])
        return cls(**values)


def _parse_timeout(raw: str) -> Optional[float]:
    value = raw.strip().lower()
    if value in ("", "none", "0"):
        return None
    try:
        timeout = float(value)
    except ValueError:
        raise ConfigError(f"{HTTP_TIMEOUT_ENV_VAR} must be a number of seconds, got {raw!r}")
    return timeout if timeout > 0 else None

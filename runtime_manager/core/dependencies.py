from __future__ import annotations

from typing import Optional

from runtime_manager.core.config import ManagerConfig
from runtime_manager.services.manager import RuntimeManager

_config: Optional[ManagerConfig] = None
_manager: Optional[RuntimeManager] = None


def get_config() -> ManagerConfig:
    global _config
    if _config is None:
        _config = ManagerConfig.from_env()
    return _config


def get_manager() -> RuntimeManager:
    """Process-wide manager; settings are loaded once, on first use."""
    global _manager
    if _manager is None:
        _manager = RuntimeManager.from_config(get_config())
    return _manager


"""
Load and persist the user settings record.
"""
from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path

from pydantic import ValidationError

from runtime_manager.core.errors import SettingsError
from runtime_manager.domain.models import Settings

logger = logging.getLogger(__name__)


class SettingsStore(ABC):
    """
    Abstract storage for the settings record.
    """

    @abstractmethod
    def load(self) -> Settings:
        """Return the persisted settings, or defaults when nothing is persisted."""
        pass

    @abstractmethod
    def save(self, settings: Settings) -> None:
        """Persist ``settings``, replacing whatever was stored before."""
        pass


class JsonSettingsStore(SettingsStore):
    def __init__(self, settings_path: Path):
        self.settings_path = settings_path

    def load(self) -> Settings:
        if not self.settings_path.exists():
            logger.debug(f"No settings at {self.settings_path}, using defaults")
            return Settings()
        try:
            data = json.loads(self.settings_path.read_text(encoding="utf-8"))
            return Settings(**data)
        except (OSError, ValueError, TypeError, ValidationError) as e:
            raise SettingsError(f"Failed to load settings from {self.settings_path}: {e}") from e

    def save(self, settings: Settings) -> None:
        self.settings_path.parent.mkdir(parents=True, exist_ok=True)
        self.settings_path.write_text(settings.model_dump_json(indent=2), encoding="utf-8")
        logger.info(f"Saved settings to {self.settings_path}")

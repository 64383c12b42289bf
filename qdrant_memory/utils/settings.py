"""
Load, update and save the user-editable memory settings.
"""

import json
from dataclasses import asdict, replace
from pathlib import Path
from typing import Any, Dict, Optional

from .config import SETTINGS_KEY, MemorySettings, config
from .logging_config import get_logger, set_debug_mode

logger = get_logger(__name__)


class SettingsError(Exception):
    """Custom exception for invalid settings updates."""
    pass


def _coerce(key: str, value: Any, current: Any) -> Any:
    """Convert an incoming value to the type of the current setting."""
    if key == 'request_timeout':
        return None if value in (None, '') else float(value)
    if isinstance(current, bool):
        if isinstance(value, str):
            return value.strip().lower() in ('1', 'true', 'yes', 'on')
        return bool(value)
    if isinstance(current, int):
        return int(value)
    if isinstance(current, float):
        return float(value)
    return '' if value is None else str(value)


class SettingsManager:
    """Owns the shared MemorySettings object and its load/save lifecycle.

    Settings are stored as a JSON document under a fixed key so the file can hold other
    extensions' settings too.
    """

    def __init__(self, path: Optional[Path] = None, defaults: Optional[MemorySettings] = None):
        """
        Initialize the settings manager.

        Args:
            path: Settings file location (uses config default if None)
            defaults: Default settings (uses environment defaults if None)
        """
        self.path = Path(path) if path is not None else config.settings_path
        self._defaults = defaults if defaults is not None else config.memory
        self.settings = replace(self._defaults)

    def _read_document(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            document = json.loads(self.path.read_text(encoding='utf-8'))
        except (OSError, ValueError) as e:
            logger.error(f'Failed to read settings from {self.path}: {e}')
            return {}
        if not isinstance(document, dict):
            logger.error(f'Ignoring settings file {self.path}: expected a JSON object')
            return {}
        return document

    def load(self) -> MemorySettings:
        """Merge saved settings over the defaults.

        Returns:
            The shared settings object
        """
        saved = self._read_document().get(SETTINGS_KEY) or {}
        # Reset to defaults in place so existing references stay valid
        for key, value in asdict(self._defaults).items():
            setattr(self.settings, key, value)
        if isinstance(saved, dict):
            try:
                self._apply(saved, strict=False)
            except SettingsError as e:
                logger.error(f'Failed to load settings, using defaults: {e}')
        set_debug_mode(self.settings.debug_mode)
        logger.info(f'Settings loaded from {self.path}')
        return self.settings

    def save(self) -> bool:
        """Persist the current settings.

        Returns:
            True if the settings file was written, False otherwise
        """
        document = self._read_document()
        document[SETTINGS_KEY] = asdict(self.settings)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(document, indent=2), encoding='utf-8')
        except OSError as e:
            logger.error(f'Failed to save settings to {self.path}: {e}')
            return False
        logger.info('Settings saved')
        return True

    def update(self, **changes: Any) -> MemorySettings:
        """Apply a configuration update to the shared settings object.

        Args:
            **changes: Setting names and new values

        Returns:
            The shared settings object

        Raises:
            SettingsError: If a key is unknown or a value cannot be converted
        """
        self._apply(changes, strict=True)
        if 'debug_mode' in changes:
            set_debug_mode(self.settings.debug_mode)
        return self.settings

    def _apply(self, changes: Dict[str, Any], strict: bool) -> None:
        known = MemorySettings.keys()
        converted = {}
        for key, value in changes.items():
            if key not in known:
                if strict:
                    raise SettingsError(f'Unknown setting: {key}')
                logger.warning(f'Ignoring unknown setting: {key}')
                continue
            try:
                converted[key] = _coerce(key, value, getattr(self.settings, key))
            except (TypeError, ValueError) as e:
                raise SettingsError(f'Invalid value for {key}: {value!r}') from e

        for key, value in converted.items():
            setattr(self.settings, key, value)

# settings.py
import json
import logging
from pathlib import Path
from typing import Any, Dict

from models import Configuration

logger = logging.getLogger(__name__)

SETTINGS_FILE = Path.home() / ".airbar" / "settings.json"

API_TOKEN_KEY = "api_token"
LOCATION_ID_KEY = "location_id"


class SettingsManager:
    def __init__(self, path: Path = SETTINGS_FILE) -> None:
        self.path = path
        self._data: Dict[str, Any] = {}
        self.load()

    def load(self) -> None:
        if self.path.exists():
            try:
                self._data = json.loads(self.path.read_text(encoding="utf-8"))
            except json.JSONDecodeError:
                logger.warning("Ignoring unreadable settings file %s", self.path)
                self._data = {}
            if not isinstance(self._data, dict):
                self._data = {}
        else:
            self._data = {}

    def save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(self._data, indent=4), encoding="utf-8")

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value


def load_configuration(settings: SettingsManager) -> Configuration:
    return Configuration(
        api_token=str(settings.get(API_TOKEN_KEY, "") or ""),
        location_id=str(settings.get(LOCATION_ID_KEY, "") or ""),
    )


def store_configuration(settings: SettingsManager, config: Configuration) -> None:
    settings.set(API_TOKEN_KEY, config.api_token)
    settings.set(LOCATION_ID_KEY, config.location_id)
    settings.save()

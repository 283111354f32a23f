"""Configuration management — JSON-based, stored in ~/.config/kerase/."""
import json
import logging
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_CONFIG = {
    "enabled": True,
    "hotkey_delete_char": "ctrl+alt+h",
    "hotkey_delete_word": "ctrl+alt+w",
    "hotkey_delete_sentence": "ctrl+alt+s",
    "hotkey_toggle": "ctrl+alt+p",
    "max_context_chars": 2000,
    "key_delay_ms": 10,
    "debug_logging": False,
}

CONFIG_DIR = Path.home() / ".config" / "kerase"
CONFIG_FILE = CONFIG_DIR / "config.json"

_HOTKEY_KEYS = {
    "char": "hotkey_delete_char",
    "word": "hotkey_delete_word",
    "sentence": "hotkey_delete_sentence",
    "toggle": "hotkey_toggle",
}


class Config:
    def __init__(self, path: Path = CONFIG_FILE):
        self._path = Path(path)
        self._data = dict(DEFAULT_CONFIG)
        self.load()

    @property
    def path(self) -> Path:
        return self._path

    def load(self):
        if not self._path.exists():
            return
        try:
            with open(self._path, "r") as f:
                stored = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.warning("Ignoring unreadable config %s: %s", self._path, e)
            return
        if not isinstance(stored, dict):
            logger.warning("Ignoring config %s: expected a JSON object", self._path)
            return
        self._data.update(stored)

    def save(self):
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with open(self._path, "w") as f:
            json.dump(self._data, f, indent=2, ensure_ascii=False)

    def get(self, key, default=None):
        return self._data.get(key, default)

    def set(self, key, value):
        self._data[key] = value
        self.save()

    @property
    def enabled(self) -> bool:
        return bool(self._data["enabled"])

    @enabled.setter
    def enabled(self, val):
        self._data["enabled"] = bool(val)
        self.save()

    @property
    def hotkeys(self) -> dict[str, str]:
        """Action name ('char', 'word', 'sentence', 'toggle') → hotkey string."""
        return {action: self._data.get(key, DEFAULT_CONFIG[key])
                for action, key in _HOTKEY_KEYS.items()}

    @property
    def max_context_chars(self) -> int:
        return int(self._data.get("max_context_chars", 2000))

    @property
    def key_delay_ms(self) -> int:
        return int(self._data.get("key_delay_ms", 10))

    @property
    def debug_logging(self) -> bool:
        return bool(self._data["debug_logging"])

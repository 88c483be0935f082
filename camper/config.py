import os
import json
import tomli
from enum import Enum
from typing import Dict, Any, Optional

DEFAULT_CONFIG_DIR = os.path.expanduser("~/.config/camper")
DEFAULT_CONFIG_PATH = os.path.join(DEFAULT_CONFIG_DIR, "config.toml")


class AudioFormat(str, Enum):
    """Audio file formats Bandcamp offers for download."""
    MP3_V0 = "mp3-v0"
    MP3 = "mp3"
    FLAC = "flac"
    AAC = "aac"
    OGG_VORBIS = "ogg-vorbis"
    ALAC = "alac"
    WAV = "wav"
    AIFF = "aiff"

    def __str__(self) -> str:
        return self.value


class Config:
    """Configuration manager for camper."""

    def __init__(self, config_path: Optional[str] = None):
        """Initialize configuration from file."""
        self.config_path = config_path or os.environ.get("CAMPER_CONFIG") or DEFAULT_CONFIG_PATH
        self.config_dir = os.path.dirname(self.config_path)
        self.config = self._load_config()

    def _load_config(self) -> Dict[str, Any]:
        """Load configuration from TOML file."""
        if not os.path.exists(self.config_path):
            return {}

        with open(self.config_path, "rb") as f:
            return tomli.load(f)

    def get(self, section: str, key: str, default: Any = None) -> Any:
        """Get a configuration value."""
        if section not in self.config:
            return default
        if key not in self.config[section]:
            return default
        return self.config[section][key]

    def set(self, section: str, key: str, value: Any) -> None:
        """Set a configuration value in memory; call save() to persist it."""
        self.config.setdefault(section, {})[key] = value

    def save(self) -> None:
        """Write the configuration to its TOML file."""
        if self.config_dir:
            os.makedirs(self.config_dir, exist_ok=True)

        with open(self.config_path, "w", encoding="utf-8") as f:
            f.write("# camper configuration\n")
            for section, values in self.config.items():
                f.write(f"\n[{section}]\n")
                for key, value in values.items():
                    f.write(f"{key} = {_toml_value(value)}\n")

    @property
    def fan_id(self) -> Optional[int]:
        """Get Bandcamp fan ID."""
        return self.get("bandcamp", "fan_id")

    @property
    def identity(self) -> Optional[str]:
        """Get Bandcamp identity cookie."""
        env_identity = os.environ.get("CAMPER_IDENTITY")
        if env_identity:
            return env_identity
        return self.get("bandcamp", "identity")

    @property
    def library(self) -> Optional[str]:
        """Get music library path."""
        path = self.get("library", "path")
        if path is None:
            return None
        return os.path.expanduser(path)

    @property
    def format(self) -> Optional[AudioFormat]:
        """Get default download format."""
        value = self.get("library", "format")
        if value is None:
            return None
        try:
            return AudioFormat(value)
        except ValueError:
            return None

    def is_valid(self) -> bool:
        """Check that every value needed to talk to Bandcamp is configured."""
        fan_id = self.fan_id
        fan_id_configured = isinstance(fan_id, int) and not isinstance(fan_id, bool) and fan_id > 0
        identity_configured = bool(self.identity)
        library_configured = self.library is not None and os.path.exists(self.library)

        return fan_id_configured and identity_configured and library_configured and self.format is not None


def _toml_value(value: Any) -> str:
    # JSON escapes for quotes, backslashes and control characters are valid in
    # TOML basic strings; other characters are written as UTF-8 since TOML has
    # no surrogate pair escapes. DEL is not escaped by JSON but must be in TOML.
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    return json.dumps(str(value), ensure_ascii=False).replace("\x7f", "\\u007f")

"""
Converter settings and their persistence.

Settings can be saved to and loaded from JSON, by default at
~/.config/vmf2nd/settings.json. Command line flags override file values.
"""

from __future__ import annotations
import json
import logging
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional, Union

logger = logging.getLogger(__name__)

TEXTURE_MODES = ("auto", "hash", "rules")


def get_config_dir() -> Path:
    """
    Get the directory for storing converter settings.

    Returns:
        Path to ~/.config/vmf2nd/
    """
    return Path.home() / ".config" / "vmf2nd"


def default_settings_path() -> Path:
    return get_config_dir() / "settings.json"


class SettingsError(Exception):
    """Raised for invalid or unreadable settings."""
    pass


@dataclass
class ConverterSettings:
    # World scale applied to every coordinate; 1.5 suits Narbacular Drop's player size
    unit_scale: float = 1.5
    # Level loaded when the player reaches the exit
    next_level: str = "Levels/LongHaul.cmf"

    # Level creation kit (csg.exe, stock WAD, surface lists)
    tools_dir: Optional[str] = None
    # WAD produced from the game's materials, enables hash texture mode
    texture_pack: Optional[str] = None
    texture_mode: str = "auto"

    # Emit proximity hints in front of locked doors
    door_hints: bool = False
    hint_message: str = "This door is locked."

    # Compilation
    compile: bool = True
    use_wine: Optional[bool] = None  # None = only on non-Windows hosts
    max_compile_attempts: int = 256

    # Upper bound on relay chains followed by the IO resolver
    max_trace_depth: int = 64

    def __post_init__(self):
        self.validate()

    def validate(self) -> None:
        errors = []
        if self.unit_scale <= 0:
            errors.append("unit_scale must be positive")
        if self.texture_mode not in TEXTURE_MODES:
            errors.append(f"texture_mode must be one of {', '.join(TEXTURE_MODES)}")
        if self.max_trace_depth < 1:
            errors.append("max_trace_depth must be at least 1")
        if self.max_compile_attempts < 1:
            errors.append("max_compile_attempts must be at least 1")
        if errors:
            raise SettingsError(f"Invalid settings: {'; '.join(errors)}")

    def with_overrides(self, **overrides: Any) -> "ConverterSettings":
        """Return a copy with every non-None override applied."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})


def _settings_to_dict(settings: ConverterSettings) -> Dict[str, Any]:
    return asdict(settings)


def _dict_to_settings(data: Dict[str, Any]) -> ConverterSettings:
    known = {f.name for f in fields(ConverterSettings)}
    unknown = sorted(set(data) - known)
    if unknown:
        logger.warning("Ignoring unknown settings: %s", ", ".join(unknown))
    return ConverterSettings(**{k: v for k, v in data.items() if k in known})


def load_settings(path: Optional[Union[str, Path]] = None) -> ConverterSettings:
    """
    Load settings from a JSON file.

    Args:
        path: Settings file; defaults to ~/.config/vmf2nd/settings.json

    Returns:
        Loaded settings, or defaults if the default file does not exist

    Raises:
        SettingsError: If an explicitly given file is missing or invalid
    """
    explicit = path is not None
    path = Path(path) if explicit else default_settings_path()
    if not path.exists():
        if explicit:
            raise SettingsError(f"Settings file not found: {path}")
        return ConverterSettings()

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise SettingsError(f"Failed to read settings from {path}: {e}") from e

    if not isinstance(data, dict):
        raise SettingsError(f"Settings file {path} must contain a JSON object")
    logger.debug("Loaded settings from %s", path)
    return _dict_to_settings(data)


def save_settings(settings: ConverterSettings, path: Optional[Union[str, Path]] = None) -> Path:
    """
    Save settings as JSON.

    Returns:
        Path to the saved file
    """
    path = Path(path) if path is not None else default_settings_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(_settings_to_dict(settings), f, indent=2)
    logger.info("Saved settings to %s", path)
    return path

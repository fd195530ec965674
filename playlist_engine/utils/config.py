"""
Configuration for the playlist analytics engine.

A YAML file (config/config.yaml) is merged over built-in defaults,
`${ENV_VAR}` references are resolved from the environment, and the
result is checked against CONFIG_SCHEMA before anything is built from it.
"""

import copy
import os
import re
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml

from playlist_engine.utils.errors import ConfigurationError

_ENV_REFERENCE = re.compile(r'\$\{([^}]+)\}')

_MISSING = object()

# Per-key rules: type, required, min, max (inclusive), choices
CONFIG_SCHEMA: Dict[str, Dict[str, Any]] = {
    "audio.sample_rate": {"type": int, "required": True, "min": 8000},
    "audio.frame_size": {"type": int, "required": True, "min": 64},
    "audio.max_file_size": {"type": int, "min": 1},
    "audio.fetch_timeout": {"type": (int, float), "min": 0},
    "analysis.confidence_threshold": {"type": (int, float), "required": True, "min": 0.0, "max": 1.0},
    "analysis.tempo.min_bpm": {"type": (int, float), "min": 1},
    "analysis.tempo.max_bpm": {"type": (int, float), "min": 1},
    "inference.provider": {"type": str, "choices": ("groq", "togetherai", "openai")},
    "cache.max_size": {"type": int, "min": 1},
    "cache.ttl": {"type": (int, float), "min": 0},
    "performance.max_workers": {"type": int, "min": 1},
    "recommendations.limit": {"type": int, "min": 1},
    "recommendations.bpm_margin": {"type": (int, float), "min": 0.0, "max": 1.0},
    "logging.format": {"type": str, "choices": ("text", "json")},
    "logging.level": {"type": str, "choices": ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")},
}


def interpolate_env(value: Any) -> Any:
    """
    Resolve ${ENV_VAR} references inside strings, lists and mappings.

    Unset variables are left as the literal reference so that a later
    consumer (e.g. the LLM client's key lookup) can report them.
    """
    if isinstance(value, dict):
        return {key: interpolate_env(item) for key, item in value.items()}
    if isinstance(value, list):
        return [interpolate_env(item) for item in value]
    if isinstance(value, str):
        return _ENV_REFERENCE.sub(lambda match: os.environ.get(match.group(1), match.group(0)), value)
    return value


class ConfigManager:
    """
    Dotted-key access to a nested configuration mapping.

    `get("analysis.tempo.min_bpm")` walks the sections; `set` creates
    missing sections on the way down.
    """

    def __init__(self, config_dict: Optional[Dict[str, Any]] = None):
        self._config: Dict[str, Any] = config_dict or {}

    @classmethod
    def from_file(cls, file_path: Path) -> "ConfigManager":
        """
        Load a YAML file over the defaults, resolving ${ENV_VAR} references.

        Raises:
            ConfigurationError: If the file is missing, unparsable or not a mapping
        """
        file_path = Path(file_path)
        if not file_path.exists():
            raise ConfigurationError(f"Configuration file not found: {file_path}", config_key=str(file_path))

        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                loaded = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Failed to parse YAML configuration: {e}", config_key=str(file_path)) from e

        if not isinstance(loaded, dict):
            raise ConfigurationError("Top level of configuration must be a mapping", config_key=str(file_path))

        return cls(interpolate_env(merge_config(get_default_config(), loaded)))

    def get(self, key: str, default: Any = None, required: bool = False) -> Any:
        """
        Value at a dotted key.

        Raises:
            ConfigurationError: If `required` and the key is absent
        """
        value = self._lookup(key)
        if value is _MISSING:
            if required:
                raise ConfigurationError(f"Required configuration key not found: {key}", config_key=key)
            return default
        return value

    def _lookup(self, key: str) -> Any:
        node: Any = self._config
        for part in key.split('.'):
            if not isinstance(node, dict) or part not in node:
                return _MISSING
            node = node[part]
        return node

    def get_section(self, key: str) -> Dict[str, Any]:
        """A whole section; empty when missing or not a mapping."""
        value = self.get(key, default={})
        return value if isinstance(value, dict) else {}

    def set(self, key: str, value: Any) -> None:
        *sections, leaf = key.split('.')
        node = self._config
        for part in sections:
            if not isinstance(node.get(part), dict):
                node[part] = {}
            node = node[part]
        node[leaf] = value

    def to_dict(self) -> Dict[str, Any]:
        return copy.deepcopy(self._config)

    def validate(self, schema: Mapping[str, Mapping[str, Any]]) -> None:
        """
        Check every schema key, then cross-key constraints.

        A None value only fails when the key is required.

        Raises:
            ConfigurationError: On the first violated rule
        """
        for key, rules in schema.items():
            problem = _check_value(self.get(key), rules)
            if problem:
                raise ConfigurationError(f"Invalid configuration {key}: {problem}", config_key=key)

        for key, problem in self._cross_key_problems():
            raise ConfigurationError(f"Invalid configuration {key}: {problem}", config_key=key)

    def _cross_key_problems(self) -> List[tuple]:
        problems = []
        min_bpm = self.get("analysis.tempo.min_bpm")
        max_bpm = self.get("analysis.tempo.max_bpm")
        if min_bpm is not None and max_bpm is not None and max_bpm < 2 * min_bpm:
            # Octave folding needs the range to span at least one doubling
            problems.append(("analysis.tempo", f"max_bpm {max_bpm} must be at least twice min_bpm {min_bpm}"))
        return problems


def _check_value(value: Any, rules: Mapping[str, Any]) -> Optional[str]:
    """Describe how `value` breaks `rules`, or None if it complies."""
    if value is None:
        return "required value missing" if rules.get("required") else None

    expected = rules.get("type")
    if expected and (not isinstance(value, expected) or isinstance(value, bool)):
        return f"got {type(value).__name__}"
    if "min" in rules and value < rules["min"]:
        return f"{value} is below {rules['min']}"
    if "max" in rules and value > rules["max"]:
        return f"{value} is above {rules['max']}"
    if "choices" in rules and value not in rules["choices"]:
        return f"{value!r} is not one of {', '.join(rules['choices'])}"
    return None


def merge_config(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Deep-merge override into a copy of base."""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_config(merged[key], value)
        else:
            merged[key] = value
    return merged


def find_config_file() -> Optional[Path]:
    """First existing default location, or None."""
    candidates = (
        Path("config/config.yaml"),
        Path("config.yaml"),
        Path(__file__).parent.parent.parent / "config" / "config.yaml",
    )
    return next((path for path in candidates if path.exists()), None)


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load and validate configuration.

    Args:
        config_path: YAML file to load; when None the default locations
            are searched and, failing that, built-in defaults are used

    Returns:
        Dict[str, Any]: Complete configuration

    Raises:
        ConfigurationError: If the file is unreadable or invalid
    """
    path = Path(config_path) if config_path else find_config_file()
    if path is None:
        return get_default_config()

    manager = ConfigManager.from_file(path)
    manager.validate(CONFIG_SCHEMA)
    return manager.to_dict()


def get_default_config() -> Dict[str, Any]:
    """Return default configuration values."""
    return {
        "audio": {
            "supported_formats": [".wav", ".aiff", ".aif", ".mp3", ".flac", ".ogg", ".m4a"],
            "max_file_size": 52428800,  # 50MB
            "sample_rate": 44100,
            "frame_size": 2048,
            "fetch_timeout": 30.0,
        },
        "analysis": {
            "confidence_threshold": 0.8,
            "tempo": {
                "min_bpm": 40.0,
                "max_bpm": 220.0,
                "threshold_window": 16,
                "threshold_margin": 1.5,
            },
            "fallback_tempo": {"bpm": 120.0, "confidence": 0.5},
            "fallback_key": {"key": "C", "mode": 1, "confidence": 0.5},
        },
        "inference": {
            "provider": "groq",
            "model": None,
            "api_key": None,
            "temperature": 0.3,
            "max_tokens": 200,
        },
        "cache": {
            "enabled": True,
            "max_size": 1000,
            "ttl": 3600,
        },
        "recommendations": {
            "limit": 50,
            "bpm_margin": 0.1,
        },
        "logging": {
            "level": "INFO",
            "format": "text",
            "file": None,
        },
        "performance": {
            "max_workers": 4,
        },
    }

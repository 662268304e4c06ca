"""
Config system - Layered typed configuration for trapline.

Supports a dataclass config with merge precedence:
overrides > environment variables > .env file > YAML file > defaults
"""

from __future__ import annotations

import json
import os
import threading
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional, get_origin

import yaml
from dotenv import dotenv_values

from .errors import ConfigError


@dataclass(frozen=True)
class TraplineConfig:
    """
    Runtime settings for trapping and dispatch.

    Attributes:
        stack_depth: Maximum number of frames kept per failure
        capture_stack: Whether failures record frames at all
        match_cache: Whether kind matches are memoized
        cache_size: Entries kept by the match cache before it is cleared
        skip_modules: Module name prefixes excluded from captured frames
    """

    stack_depth: int = 12
    capture_stack: bool = True
    match_cache: bool = True
    cache_size: int = 1024
    skip_modules: tuple[str, ...] = ("contextlib",)

    def __post_init__(self):
        if self.stack_depth < 0:
            raise ConfigError(
                f"stack_depth must be >= 0, got {self.stack_depth}",
                details={"field": "stack_depth"},
            )
        if self.cache_size < 0:
            raise ConfigError(
                f"cache_size must be >= 0, got {self.cache_size}",
                details={"field": "cache_size"},
            )

    def to_dict(self) -> dict:
        """Export config as dictionary."""
        return {f.name: getattr(self, f.name) for f in fields(self)}


_FIELD_NAMES = frozenset(f.name for f in fields(TraplineConfig))


class ConfigLoader:
    """
    Loads and merges trapline configuration from multiple sources.

    Merge order (later overrides earlier):
    1. Dataclass defaults
    2. YAML file (top level, or a ``trapline:`` section)
    3. .env file (keys with the prefix)
    4. Environment variables (keys with the prefix)
    5. Manual overrides

    Prefixed keys from .env files and the environment that do not name a
    field are ignored; unknown fields from YAML or overrides are errors.
    """

    def __init__(self, env_prefix: str = "TRAPLINE_"):
        self.env_prefix = env_prefix
        self.config_data: Dict[str, Any] = {}

    @classmethod
    def load(
        cls,
        path: Optional[str] = None,
        *,
        env_prefix: str = "TRAPLINE_",
        env_file: Optional[str] = None,
        overrides: Optional[Dict[str, Any]] = None,
    ) -> TraplineConfig:
        """
        Load configuration from all sources and validate it.

        Args:
            path: YAML config file path
            env_prefix: Prefix for environment variables
            env_file: Path to .env file
            overrides: Manual overrides (highest precedence)

        Returns:
            Validated TraplineConfig
        """
        loader = cls(env_prefix=env_prefix)

        if path:
            loader._load_yaml_file(Path(path))

        if env_file:
            loader._load_env_file(env_file)

        loader._load_from_env()

        if overrides:
            loader.config_data.update(overrides)

        return loader.build()

    def _load_yaml_file(self, path: Path):
        """Load config from YAML file."""
        if not path.exists():
            raise ConfigError(
                f"Config file '{path}' does not exist",
                details={"path": str(path)},
            )

        with open(path) as f:
            data = yaml.safe_load(f)

        if not data:
            return
        if not isinstance(data, dict):
            raise ConfigError(
                f"Config file '{path}' must contain a mapping",
                details={"path": str(path)},
            )

        section = data.get("trapline", data)
        if not isinstance(section, dict):
            raise ConfigError(
                f"Section 'trapline' in '{path}' must be a mapping",
                details={"path": str(path)},
            )
        self.config_data.update(section)

    def _load_env_file(self, path: str):
        """Load config from .env file."""
        env_path = Path(path)
        if not env_path.exists():
            return

        for key, value in dotenv_values(env_path).items():
            if value is not None and key.startswith(self.env_prefix):
                self._set_key(key, value)

    def _load_from_env(self):
        """Load config from environment variables."""
        for key, value in os.environ.items():
            if key.startswith(self.env_prefix):
                self._set_key(key, value)

    def _set_key(self, key: str, value: str):
        """Convert TRAPLINE_STACK_DEPTH to stack_depth."""
        name = key[len(self.env_prefix):].lower()
        # Prefixed variables that are not settings belong to someone else
        if name not in _FIELD_NAMES:
            return
        self.config_data[name] = self._parse_value(value)

    def _parse_value(self, value: str) -> Any:
        """Parse string value to appropriate type."""
        # Boolean
        if value.lower() in ("true", "yes", "on"):
            return True
        if value.lower() in ("false", "no", "off"):
            return False

        # Number
        try:
            if "." in value:
                return float(value)
            return int(value)
        except ValueError:
            pass

        # JSON
        if value.startswith(("{", "[")):
            try:
                return json.loads(value)
            except json.JSONDecodeError:
                pass

        return value

    def build(self) -> TraplineConfig:
        """Instantiate the config dataclass with type validation."""
        known = {f.name: f for f in fields(TraplineConfig)}
        unknown = sorted(set(self.config_data) - set(known))
        if unknown:
            raise ConfigError(
                f"Unknown config field(s): {', '.join(unknown)}",
                suggestion=f"Valid fields: {', '.join(known)}",
            )

        kwargs = {}
        for name, value in self.config_data.items():
            kwargs[name] = self._coerce(name, value, known[name].type)

        return TraplineConfig(**kwargs)

    def _coerce(self, name: str, value: Any, expected: Any) -> Any:
        """Coerce and check one value against its field annotation."""
        # Annotations are strings under postponed evaluation
        if expected in ("int", int):
            if isinstance(value, bool) or not isinstance(value, int):
                raise ConfigError(
                    f"Config field '{name}' expected int, got {type(value).__name__}"
                )
            return value

        if expected in ("bool", bool):
            if not isinstance(value, bool):
                raise ConfigError(
                    f"Config field '{name}' expected bool, got {type(value).__name__}"
                )
            return value

        if expected == "tuple[str, ...]" or get_origin(expected) is tuple:
            if isinstance(value, str):
                value = [part.strip() for part in value.split(",") if part.strip()]
            if not isinstance(value, (list, tuple)) or not all(
                isinstance(item, str) for item in value
            ):
                raise ConfigError(
                    f"Config field '{name}' expected a list of strings"
                )
            return tuple(value)

        return value


# ============================================================================
# Process-wide config
# ============================================================================

_config_lock = threading.Lock()
_config: Optional[TraplineConfig] = None


def get_config() -> TraplineConfig:
    """
    Get or create the process-wide config.

    The first call loads defaults and ``TRAPLINE_*`` environment variables.

    Returns:
        Active TraplineConfig
    """
    global _config
    config = _config
    if config is None:
        with _config_lock:
            if _config is None:
                _config = ConfigLoader.load()
            config = _config
    return config


def set_config(config: TraplineConfig) -> TraplineConfig:
    """Replace the process-wide config."""
    global _config
    if not isinstance(config, TraplineConfig):
        raise TypeError(f"Expected TraplineConfig, got {type(config).__name__}")
    with _config_lock:
        _config = config
    return config


def configure(**overrides: Any) -> TraplineConfig:
    """
    Apply overrides on top of the active config.

    Example:
        ```python
        configure(stack_depth=4, match_cache=False)
        ```
    """
    loader = ConfigLoader()
    loader.config_data.update(get_config().to_dict())
    loader.config_data.update(overrides)
    return set_config(loader.build())


def reset_config():
    """Drop the process-wide config so the next read reloads it."""
    global _config
    with _config_lock:
        _config = None

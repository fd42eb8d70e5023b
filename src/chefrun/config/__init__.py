"""
Configuration for chefrun.
Loads settings from an optional YAML file, a .env file and the environment.
"""
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv

DEFAULT_SETTINGS_FILE = Path.home() / ".chefrun" / "settings.yaml"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


@dataclass
class ChefRunConfig:
    """Settings threaded explicitly into actions and the CLI."""

    cache_path: Optional[str] = None
    telemetry_enabled: bool = True
    max_workers: int = 4
    ssh_port: int = 22
    ssh_user: str = "root"
    ssh_key: Optional[str] = None
    command_timeout: int = 3600

    def __post_init__(self) -> None:
        if not isinstance(self.max_workers, int) or self.max_workers <= 0:
            raise ValueError("max_workers must be a positive integer")
        if not isinstance(self.ssh_port, int) or self.ssh_port <= 0 or self.ssh_port > 65535:
            raise ValueError("ssh_port must be an integer between 1 and 65535")
        if not isinstance(self.command_timeout, int) or self.command_timeout <= 0:
            raise ValueError("command_timeout must be a positive integer")

    @classmethod
    def load(cls, settings_file: Optional[Path] = None, env_file: Optional[Path] = None) -> "ChefRunConfig":
        """
        Build a config from, in increasing priority: defaults, the YAML
        settings file, then environment variables (after loading ``env_file``).

        Args:
            settings_file: YAML settings path. Defaults to ~/.chefrun/settings.yaml if present.
            env_file: .env file to load into the environment. Optional.

        Raises:
            ValueError: If a value cannot be parsed or is out of range.
        """
        if env_file is not None:
            if not Path(env_file).exists():
                raise FileNotFoundError(f".env file not found at: {env_file}")
            load_dotenv(env_file, override=False)

        values: Dict[str, Any] = {}
        values.update(_load_settings(settings_file))

        env_map = {
            "CHEFRUN_CACHE_PATH": ("cache_path", str),
            "CHEFRUN_TELEMETRY": ("telemetry_enabled", _parse_bool),
            "CHEFRUN_MAX_WORKERS": ("max_workers", int),
            "CHEFRUN_SSH_PORT": ("ssh_port", int),
            "CHEFRUN_SSH_USER": ("ssh_user", str),
            "CHEFRUN_SSH_KEY": ("ssh_key", str),
            "CHEFRUN_COMMAND_TIMEOUT": ("command_timeout", int),
        }
        for env_key, (field, parse) in env_map.items():
            raw = os.getenv(env_key)
            if raw is None or not raw.strip():
                continue
            try:
                values[field] = parse(raw.strip())
            except ValueError as exc:
                raise ValueError(f"Invalid value for {env_key}: {raw!r}") from exc

        if "telemetry_enabled" in values and isinstance(values["telemetry_enabled"], str):
            values["telemetry_enabled"] = _parse_bool(values["telemetry_enabled"])

        return cls(**values)


def _parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise ValueError(f"Not a boolean: {value}")


def _load_settings(settings_file: Optional[Path]) -> Dict[str, Any]:
    """Load known keys from the YAML settings file; unknown keys are rejected."""
    explicit = settings_file is not None
    path = Path(settings_file) if explicit else DEFAULT_SETTINGS_FILE
    if not path.exists():
        if explicit:
            raise FileNotFoundError(f"Settings file not found: {path}")
        return {}

    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ValueError(f"Settings file must contain a mapping: {path}")

    known = set(ChefRunConfig.__dataclass_fields__)
    unknown = set(data) - known
    if unknown:
        raise ValueError(f"Unknown settings in {path}: {', '.join(sorted(unknown))}")
    return dict(data)


def get_config(settings_file: Optional[Path] = None, env_file: Optional[Path] = None) -> ChefRunConfig:
    """Convenience wrapper around ChefRunConfig.load."""
    return ChefRunConfig.load(settings_file=settings_file, env_file=env_file)

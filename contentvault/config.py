# contentvault/config.py
"""
Vault configuration.

Settings come from an optional YAML file; command-line flags override
whatever the file sets.

Example config.yaml:
    data_dir: /var/lib/contentvault
    administrator: admin
    host: 0.0.0.0
    port: 8400
    log_level: INFO
"""

import logging
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

DEFAULT_DATA_DIR = "./vault"
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8400

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


@dataclass
class VaultConfig:
    """Runtime settings for the CLI and server."""
    data_dir: Path = Path(DEFAULT_DATA_DIR)
    administrator: Optional[str] = None
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VaultConfig":
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in (data or {}).items() if k in known}
        config = cls(**values)
        config.data_dir = Path(config.data_dir).expanduser()
        config.port = int(config.port)
        config.log_level = str(config.log_level).upper()
        return config

    @classmethod
    def from_yaml(cls, yaml_content: str) -> "VaultConfig":
        """Parse configuration from a YAML string."""
        data = yaml.safe_load(yaml_content) or {}
        if not isinstance(data, dict):
            raise ValueError("Configuration must be a YAML mapping")
        return cls.from_dict(data)

    @classmethod
    def from_file(cls, path: Path | str) -> "VaultConfig":
        """Load configuration from a YAML file."""
        with open(path, "r") as f:
            return cls.from_yaml(f.read())

    def override(self, **values: Any) -> "VaultConfig":
        """Apply non-None overrides (e.g. from command-line flags)."""
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        data.update({k: v for k, v in values.items() if v is not None})
        return VaultConfig.from_dict(data)


def load_config(path: Path | str = None, **overrides: Any) -> VaultConfig:
    """Load config from path (if given) and apply overrides."""
    config = VaultConfig.from_file(path) if path else VaultConfig()
    return config.override(**overrides)


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
    )

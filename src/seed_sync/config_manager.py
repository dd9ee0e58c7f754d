"""User configuration file management."""

from pathlib import Path
from typing import Any, Dict, Optional

import yaml


def get_config_path() -> Path:
    """Return the path of the user config file (~/.seed-sync/config.yaml)."""
    return Path.home() / ".seed-sync" / "config.yaml"


def load_config(config_path: Path) -> Optional[Dict[str, Any]]:
    """
    Load configuration from a YAML file.

    Returns None when the file does not exist. Parse errors propagate as
    yaml.YAMLError.
    """
    if not config_path.exists():
        return None

    with open(config_path, "r") as f:
        return yaml.safe_load(f)


def save_config(config_path: Path, config_data: Dict[str, Any]) -> None:
    """Save configuration to a YAML file, creating the parent directory if needed."""
    config_path.parent.mkdir(parents=True, exist_ok=True)

    with open(config_path, "w") as f:
        yaml.dump(config_data, f, default_flow_style=False, sort_keys=False)

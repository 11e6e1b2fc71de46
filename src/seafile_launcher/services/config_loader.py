"""Configuration loader for the Seafile launcher."""

from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from seafile_launcher.errors import LauncherError


class ConfigLoader:
    """Loads YAML configuration files for CLI defaults."""

    SUPPORTED_KEYS = {
        "verbose",
        "skip_prereqs",
        "docker_args",
        "manual_upgrade",
        "self_update",
        "base_dir",
        "log_file",
        "container_name",
    }

    def load(self, config_path: Optional[str]) -> Dict[str, Any]:
        if not config_path:
            return {}

        path = Path(config_path)
        if not path.exists():
            raise LauncherError(f"Config file not found: {config_path}")

        try:
            parsed = yaml.safe_load(path.read_text(encoding="utf-8"))
        except (yaml.YAMLError, OSError) as exc:
            raise LauncherError(f"Invalid config file '{config_path}': {exc}") from exc

        if parsed is None:
            return {}
        if not isinstance(parsed, dict):
            raise LauncherError("Config file must contain a YAML mapping at the root.")

        unknown = sorted(set(parsed.keys()) - self.SUPPORTED_KEYS)
        if unknown:
            unknown_list = ", ".join(unknown)
            raise LauncherError(f"Unknown configuration keys: {unknown_list}")

        return parsed

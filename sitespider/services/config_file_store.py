import logging
import os
from typing import Optional

import yaml

logger = logging.getLogger(__name__)


class ConfigFileStore:
    """Filesystem/YAML IO for spider job files.

    Responsibility: locate, read, and parse YAML files on disk. Names are
    confined to `configs_dir`.
    """

    def __init__(self, *, configs_dir: str):
        self.configs_dir = configs_dir

    def list_config_files(self) -> list[str]:
        if not os.path.isdir(self.configs_dir):
            return []
        return sorted(
            fname
            for fname in os.listdir(self.configs_dir)
            if fname.endswith(".yml") or fname.endswith(".yaml")
        )

    def _resolve_path(self, config_path: str) -> Optional[str]:
        name = os.path.basename(config_path)
        if not name or name != config_path:
            return None
        return os.path.join(self.configs_dir, name)

    def exists(self, config_path: str) -> bool:
        full_path = self._resolve_path(config_path)
        return full_path is not None and os.path.isfile(full_path)

    def load_yaml_dict(self, config_path: str) -> Optional[dict]:
        """Return parsed YAML dict for `config_path`, or None if missing/invalid."""
        raw = self.read_raw_yaml(config_path)
        if raw is None:
            return None
        try:
            data = yaml.safe_load(raw)
        except yaml.YAMLError as e:
            logger.warning("Invalid YAML in %s: %s", config_path, e)
            return None
        return data if isinstance(data, dict) else None

    def read_raw_yaml(self, config_path: str) -> Optional[str]:
        """Return raw YAML contents for `config_path`, or None if missing/unreadable."""
        full_path = self._resolve_path(config_path)
        if full_path is None or not os.path.isfile(full_path):
            return None
        try:
            with open(full_path, "r", encoding="utf-8") as f:
                return f.read()
        except OSError as e:
            logger.warning("Could not read config file %s: %s", config_path, e)
            return None

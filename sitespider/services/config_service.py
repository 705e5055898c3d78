import logging
from typing import Optional

from sitespider.domain.config import SpiderConfig
from sitespider.exceptions import ConfigNotFoundError
from sitespider.services.config_file_store import ConfigFileStore
from sitespider.services.spider_config_parser import SpiderConfigParser

logger = logging.getLogger(__name__)


class ConfigService:
    """Job files on disk, parsed into SpiderConfig objects."""

    def __init__(self, file_store: ConfigFileStore, parser: Optional[SpiderConfigParser] = None):
        self.file_store = file_store
        self.parser = parser or SpiderConfigParser()

    def list_configs(self) -> list[str]:
        return self.file_store.list_config_files()

    def get_config(self, config_path: str) -> SpiderConfig:
        """Load and parse a job file; raises ConfigNotFoundError or ConfigurationError."""
        if not self.file_store.exists(config_path):
            raise ConfigNotFoundError(config_path)
        data = self.file_store.load_yaml_dict(config_path)
        if data is None:
            raise ConfigNotFoundError(config_path, reason="is not a valid YAML mapping")
        config = self.parser.parse(data=data, config_path=config_path)
        logger.debug("Loaded job file %s: %r", config_path, config)
        return config

    def get_config_yaml(self, config_path: str) -> Optional[str]:
        return self.file_store.read_raw_yaml(config_path)

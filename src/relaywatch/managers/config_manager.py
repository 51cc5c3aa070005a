"""
Config Manager

Loads the supervisor's YAML configuration, with include support and a
factory-defaults fallback, into a typed RelaywatchConfig.
"""

import yaml
from pathlib import Path
from typing import Dict, List, Optional, Union

from relaywatch.models.config import RelaywatchConfig
from relaywatch.models.errors import ConfigError
from relaywatch.utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.CONFIG)

PACKAGE_CONFIG_DIR = Path(__file__).resolve().parent.parent / "config"


class ConfigManager:
    """
    Main configuration manager with include system support

    Loads relaywatch.yaml and processes the include: directive to merge
    modular YAML files. Falls back to factory_defaults.yaml when the main
    file is missing or invalid, and to built-in defaults when that fails too.

    Example:
        config = ConfigManager().load()
        config.bridge.poll_interval   # 4.0
    """

    def __init__(
        self,
        config_path: Optional[Union[str, Path]] = None,
        defaults_path: Optional[Union[str, Path]] = None,
    ):
        """
        Args:
            config_path: Main config file (default: packaged relaywatch.yaml)
            defaults_path: Factory defaults fallback
        """
        self.config_path = Path(config_path) if config_path else PACKAGE_CONFIG_DIR / "relaywatch.yaml"
        self.factory_defaults_path = (
            Path(defaults_path) if defaults_path else PACKAGE_CONFIG_DIR / "factory_defaults.yaml"
        )
        self.data: Dict = {}
        self.config: Optional[RelaywatchConfig] = None

    def load(self) -> RelaywatchConfig:
        """
        Load YAML configuration

        Process:
        1. Load the main config file
        2. If it has an 'include:' list, load and merge those files
        3. Validate into RelaywatchConfig
        4. On any failure fall back to factory defaults, then built-in defaults

        Returns:
            Typed configuration
        """
        try:
            self.data = self._read(self.config_path)
            self.config = RelaywatchConfig.from_dict(self.data)
            log.info("Configuration loaded", path=str(self.config_path))
            return self.config
        except (OSError, yaml.YAMLError, ConfigError) as ex:
            log.error("Failed to load config", path=str(self.config_path), error=str(ex), error_type=type(ex).__name__)
            log.warn("Falling back to factory defaults")

        try:
            self.data = self._read(self.factory_defaults_path)
            self.config = RelaywatchConfig.from_dict(self.data)
        except (OSError, yaml.YAMLError, ConfigError) as ex:
            log.error("Factory defaults unusable; using built-in defaults", error=str(ex))
            self.data = {}
            self.config = RelaywatchConfig()

        return self.config

    def _read(self, path: Path) -> Dict:
        with open(path, "r", encoding="utf-8") as f:
            main_config = yaml.safe_load(f) or {}

        if not isinstance(main_config, dict):
            raise ConfigError(f"{path.name}: top level must be a mapping")

        includes = main_config.pop("include", None)
        if includes:
            log.info("Using include-based configuration")
            merged = self._load_with_includes(includes, path.parent)
            merged.update(main_config)
            return merged
        return main_config

    def _load_with_includes(self, include_list: List[str], config_dir: Path) -> Dict:
        """
        Load and merge multiple YAML files from include list

        Later files override earlier ones section by section.
        """
        merged: Dict = {}

        for filename in include_list:
            filepath = config_dir / filename
            with open(filepath, "r", encoding="utf-8") as f:
                file_data = yaml.safe_load(f)
            if not file_data:
                continue
            if not isinstance(file_data, dict):
                raise ConfigError(f"{filename}: top level must be a mapping")
            merged.update(file_data)
            log.debug(f"Loaded {filename}", keys=str(list(file_data.keys())))

        return merged

"""Configuration loader for JSON/YAML files and environment variables."""

import os
import json
from pathlib import Path
from typing import Dict, Any, Union

import yaml
from pydantic import ValidationError

from .schema import MirrorConfig
from ..exceptions import ConfigurationError
from ..utils.logging import get_logger


# Environment variable -> MirrorConfig field
ENV_STRING_OVERRIDES = {
    "BUCKETMIRROR_ACCESS_KEY_ID": "access_key_id",
    "BUCKETMIRROR_SECRET_ACCESS_KEY": "secret_access_key",
    "BUCKETMIRROR_BUCKET": "bucket",
    "BUCKETMIRROR_PREFIX": "prefix",
    "BUCKETMIRROR_REGION": "region",
    "BUCKETMIRROR_ENDPOINT_URL": "endpoint_url",
    "BUCKETMIRROR_WORKING_DIRECTORY": "working_directory",
}

ENV_BOOL_OVERRIDES = {
    "BUCKETMIRROR_USE_SSL": "use_ssl",
    "BUCKETMIRROR_AUTO_GET_SOURCE": "auto_get_source",
    "BUCKETMIRROR_IGNORE_MISSING_ROOT": "ignore_missing_root",
}

DEFAULT_CONFIG_FILES = [
    "./bucketmirror.yaml",
    "./bucketmirror.yml",
    "./bucketmirror.json",
    "./config/bucketmirror.yaml",
    "./config/bucketmirror.yml",
    "./config/bucketmirror.json",
]


class ConfigLoader:
    """Loads and validates mirror configuration from various sources."""

    def __init__(self):
        self.logger = get_logger(self.__class__.__name__)

    def load_from_file(self, file_path: Union[str, Path]) -> MirrorConfig:
        """Load configuration from a JSON or YAML file.

        Args:
            file_path: Path to configuration file

        Returns:
            Validated MirrorConfig object

        Raises:
            ConfigurationError: If file cannot be loaded or validated
        """
        file_path = Path(file_path)

        if not file_path.exists():
            raise ConfigurationError(f"Configuration file not found: {file_path}")

        self.logger.info("Loading configuration from file", file_path=str(file_path))

        suffix = file_path.suffix.lower()
        if suffix not in (".yaml", ".yml", ".json"):
            raise ConfigurationError(f"Unsupported file format: {file_path.suffix}")

        try:
            with open(file_path, "r", encoding="utf-8") as f:
                if suffix == ".json":
                    data = json.load(f)
                else:
                    data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML format: {e}") from e
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Invalid JSON format: {e}") from e
        except OSError as e:
            raise ConfigurationError(f"Failed to read configuration: {e}") from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigurationError(f"Configuration root must be a mapping: {file_path}")

        return self.load_from_dict(data)

    def load_from_dict(self, data: Dict[str, Any]) -> MirrorConfig:
        """Load configuration from dictionary.

        Args:
            data: Configuration data as dictionary

        Returns:
            Validated MirrorConfig object
        """
        data = self._apply_env_overrides(data)

        try:
            config = MirrorConfig(**data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e

        self.logger.info(
            "Configuration loaded",
            bucket=config.bucket,
            prefix=config.prefix,
            working_directory=config.working_directory,
            auto_get_source=config.auto_get_source
        )

        return config

    def _apply_env_overrides(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Apply environment variable overrides to configuration data.

        Environment variables use the format: BUCKETMIRROR_<FIELD>
        For example: BUCKETMIRROR_BUCKET, BUCKETMIRROR_AUTO_GET_SOURCE
        """
        env_overrides = {}

        for env_name, field_name in ENV_STRING_OVERRIDES.items():
            value = os.getenv(env_name)
            if value is not None:
                env_overrides[field_name] = value

        for env_name, field_name in ENV_BOOL_OVERRIDES.items():
            value = os.getenv(env_name)
            if value is not None:
                env_overrides[field_name] = value.lower() in ["true", "1", "yes"]

        if not env_overrides:
            return data

        # An override replaces both spellings of the field
        merged = dict(data)
        for field_name in env_overrides:
            alias = MirrorConfig.model_fields[field_name].alias
            if alias:
                merged.pop(alias, None)
        merged.update(env_overrides)

        self.logger.info("Applied environment variable overrides", overrides=sorted(env_overrides))
        return merged


def load_config_from_env() -> MirrorConfig:
    """Load configuration from environment variables and default files.

    Looks for configuration files in this order:
    1. BUCKETMIRROR_CONFIG_FILE environment variable
    2. ./bucketmirror.yaml, .yml, .json
    3. ./config/bucketmirror.yaml, .yml, .json

    If no file is found, the configuration is built from environment
    variables alone.
    """
    loader = ConfigLoader()
    logger = get_logger("load_config_from_env")

    config_file = os.getenv("BUCKETMIRROR_CONFIG_FILE")
    if config_file:
        if os.path.exists(config_file):
            return loader.load_from_file(config_file)
        raise ConfigurationError(f"Configuration file not found: {config_file}")

    for file_path in DEFAULT_CONFIG_FILES:
        if os.path.exists(file_path):
            logger.info("Found configuration file", file=file_path)
            return loader.load_from_file(file_path)

    logger.info("No configuration file found, using environment variables")
    return loader.load_from_dict({})

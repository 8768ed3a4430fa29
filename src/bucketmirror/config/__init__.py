"""Configuration package for the bucket mirror."""

from .settings import (
    LoggingSettings,
    AppSettings,
    get_settings
)

from .schema import (
    MirrorConfig,
    MIRROR_CONFIG_EXAMPLE
)

from .loader import (
    ConfigLoader,
    load_config_from_env
)

from ..exceptions import ConfigurationError

__all__ = [
    "LoggingSettings",
    "AppSettings",
    "get_settings",

    "MirrorConfig",
    "MIRROR_CONFIG_EXAMPLE",

    "ConfigLoader",
    "ConfigurationError",
    "load_config_from_env"
]

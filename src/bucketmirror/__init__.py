"""Mirror an object store bucket into a local directory."""

# config must load before the modules that log through utils.logging
from .config import MirrorConfig, ConfigLoader, load_config_from_env
from .exceptions import (
    MirrorError,
    ParseError,
    FilesystemError,
    StoreError,
    RepositoryUnavailable,
    TransportError,
    ObjectNotFound,
    ConfigurationError
)
from .core import BucketMirror, ChangeKind, ChangeRecord, CycleResult, FileEntry

__version__ = "1.0.0"

__all__ = [
    "MirrorConfig",
    "ConfigLoader",
    "load_config_from_env",
    "MirrorError",
    "ParseError",
    "FilesystemError",
    "StoreError",
    "RepositoryUnavailable",
    "TransportError",
    "ObjectNotFound",
    "ConfigurationError",
    "BucketMirror",
    "ChangeKind",
    "ChangeRecord",
    "CycleResult",
    "FileEntry",
]

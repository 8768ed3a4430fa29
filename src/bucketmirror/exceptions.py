"""Exception hierarchy shared by the mirror components."""


class MirrorError(Exception):
    """Base exception for all bucket mirror errors."""
    pass


class ParseError(MirrorError, ValueError):
    """Raised when a remote listing entry carries a malformed size or timestamp."""
    pass


class FilesystemError(MirrorError):
    """Raised when a local walk, delete or write fails."""

    def __init__(self, message: str, path: str = ""):
        super().__init__(message)
        self.path = path


class StoreError(MirrorError):
    """Base exception for object store failures."""
    pass


class RepositoryUnavailable(StoreError):
    """Raised when the configured bucket (or prefix root) does not exist."""

    def __init__(self, message: str, bucket: str = "", prefix: str = ""):
        super().__init__(message)
        self.bucket = bucket
        self.prefix = prefix


class TransportError(StoreError):
    """Raised on network, authentication or service failures."""
    pass


class ObjectNotFound(StoreError):
    """Raised when a requested object key does not exist."""

    def __init__(self, message: str, key: str = ""):
        super().__init__(message)
        self.key = key


class ConfigurationError(MirrorError):
    """Raised when configuration loading fails."""
    pass

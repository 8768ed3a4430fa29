"""Store clients package for object store integrations."""

from .base import (
    BaseStoreClient,
    ListPage,
    RemoteObject
)

from .s3 import S3StoreClient
from .factory import StoreClientFactory

from ..exceptions import (
    StoreError,
    RepositoryUnavailable,
    TransportError,
    ObjectNotFound
)

__all__ = [
    # Base classes and exceptions
    "BaseStoreClient",
    "ListPage",
    "RemoteObject",
    "StoreError",
    "RepositoryUnavailable",
    "TransportError",
    "ObjectNotFound",

    # Client implementations
    "S3StoreClient",

    # Factory
    "StoreClientFactory"
]

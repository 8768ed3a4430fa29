"""Base object store client interface and common structures."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, BinaryIO, Dict, List, Union

from ..utils.logging import get_logger


@dataclass
class RemoteObject:
    """One entry of an object listing, as reported by the store.

    ``last_modified`` and ``size`` are kept in the store's own representation
    (text from XML listings, or already-decoded values from SDKs) and are
    normalized by :meth:`bucketmirror.core.models.FileEntry.from_remote`.
    """

    key: str
    last_modified: Union[str, datetime]
    size: Union[str, int]


@dataclass
class ListPage:
    """A single page of an object listing."""

    objects: List[RemoteObject] = field(default_factory=list)
    is_truncated: bool = False


class BaseStoreClient(ABC):
    """Abstract base class for object store clients."""

    def __init__(self, **kwargs):
        self.logger = get_logger(self.__class__.__name__)

    @abstractmethod
    def list_objects(self, bucket: str, prefix: str, marker: str) -> ListPage:
        """List one page of objects under a prefix.

        Args:
            bucket: Bucket name
            prefix: Key prefix to restrict the listing to
            marker: Key after which the listing starts ("" for the first page)

        Returns:
            ListPage with the objects and whether more pages remain

        Raises:
            RepositoryUnavailable: If the bucket does not exist
            TransportError: On any other failure
        """
        pass

    @abstractmethod
    def get_object(self, bucket: str, key: str) -> BinaryIO:
        """Open an object's content for reading.

        The caller owns the returned stream and must close it.

        Raises:
            ObjectNotFound: If the key does not exist
            TransportError: On any other failure
        """
        pass

    def get_store_info(self) -> Dict[str, Any]:
        """Get information about the store connection."""
        return {
            "client_type": self.__class__.__name__,
        }

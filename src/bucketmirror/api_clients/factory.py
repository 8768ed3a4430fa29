"""Store client factory for creating appropriate client instances."""

from typing import Dict, Type

from ..config.schema import MirrorConfig
from .base import BaseStoreClient
from .s3 import S3StoreClient


class StoreClientFactory:
    """Factory for creating store client instances."""

    _client_classes: Dict[str, Type[BaseStoreClient]] = {
        "s3": S3StoreClient,
    }

    @classmethod
    def create_client(cls, config: MirrorConfig, store_type: str = "s3", **kwargs) -> BaseStoreClient:
        """Create a store client instance.

        Args:
            config: Mirror configuration carrying credentials and transport options
            store_type: Registered store type
            **kwargs: Additional parameters passed to the client

        Returns:
            Configured store client instance

        Raises:
            ValueError: If store type is not supported
        """
        if store_type not in cls._client_classes:
            raise ValueError(f"Unsupported store type: {store_type}")

        client_class = cls._client_classes[store_type]

        kwargs.update({
            "access_key_id": config.access_key_id,
            "secret_access_key": config.secret_access_key.get_secret_value(),
            "use_ssl": config.use_ssl,
            "region": config.region,
            "endpoint_url": config.endpoint_url
        })

        return client_class(**kwargs)

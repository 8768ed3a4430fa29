"""Mirror orchestrator running one detect/apply integration cycle."""

import os
from dataclasses import dataclass, field
from typing import List, Optional

from .applier import ApplyResult, apply_changes
from .local_lister import list_local
from .models import ChangeRecord, FileEntry
from .reconciler import reconcile
from .remote_lister import list_remote
from ..api_clients import BaseStoreClient, StoreClientFactory
from ..config.schema import MirrorConfig
from ..utils.logging import get_logger, log_execution_time


@dataclass
class CycleResult:
    """Outcome of one integration cycle."""

    modifications: List[ChangeRecord] = field(default_factory=list)
    apply_result: Optional[ApplyResult] = None

    @property
    def applied(self) -> bool:
        return self.apply_result is not None


class BucketMirror:
    """Mirrors a bucket (optionally scoped by prefix) into a local working directory.

    Modifications detected by :meth:`get_modifications` are cached and reused
    by :meth:`get_source`, so the changes applied are exactly the changes
    reported for the cycle.
    """

    def __init__(self, config: MirrorConfig, client: Optional[BaseStoreClient] = None):
        """Initialize the mirror.

        Args:
            config: Mirror configuration
            client: Store client; created from the configuration when omitted
        """
        self.config = config
        self._client = client
        self._modifications: Optional[List[ChangeRecord]] = None
        self.logger = get_logger(self.__class__.__name__)

    @property
    def client(self) -> BaseStoreClient:
        if self._client is None:
            self._client = StoreClientFactory.create_client(self.config)
        return self._client

    @property
    def working_directory(self) -> str:
        return self.config.working_directory

    @log_execution_time
    def get_modifications(self) -> List[ChangeRecord]:
        """Detect the changes needed to bring the working directory in sync.

        Returns:
            Created, then Updated, then Deleted records
        """
        self.logger.info(
            "Checking for modifications",
            bucket=self.config.bucket,
            prefix=self.config.prefix,
            working_directory=self.working_directory
        )

        remote = list_remote(
            self.client,
            self.config.bucket,
            self.config.prefix,
            ignore_missing_root=self.config.ignore_missing_root
        )
        local = self._list_local()

        self._modifications = reconcile(remote, local, self.working_directory, self.config.prefix)
        return self._modifications

    @log_execution_time
    def get_source(self) -> Optional[ApplyResult]:
        """Apply the cycle's modifications when ``auto_get_source`` is enabled.

        Returns:
            ApplyResult, or None when nothing was applied
        """
        self.logger.info("Getting source from object store", bucket=self.config.bucket)

        if not self.config.auto_get_source:
            self.logger.info("Automatic source retrieval disabled, skipping")
            return None

        if self._modifications is None:
            self.get_modifications()

        return apply_changes(self.client, self.config.bucket, self._modifications, self.working_directory)

    def run_cycle(self) -> CycleResult:
        """Detect modifications and, when configured, apply them."""
        try:
            modifications = self.get_modifications()
            apply_result = self.get_source()
        finally:
            self._modifications = None

        return CycleResult(modifications=modifications, apply_result=apply_result)

    # Host lifecycle hooks; the mirror keeps no state between cycles.

    def initialize(self) -> None:
        pass

    def purge(self) -> None:
        pass

    def label_source_control(self) -> None:
        pass

    def _list_local(self) -> List[FileEntry]:
        if not os.path.exists(self.working_directory):
            self.logger.info(
                "Working directory does not exist yet, treating as empty",
                working_directory=self.working_directory
            )
            return []
        return list_local(self.working_directory, self.config.prefix)

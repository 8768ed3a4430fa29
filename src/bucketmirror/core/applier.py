"""Application of detected changes to the local mirror."""

import contextlib
import os
from dataclasses import dataclass
from typing import Iterable

from botocore.exceptions import BotoCoreError

from .models import ChangeKind, ChangeRecord
from ..api_clients.base import BaseStoreClient
from ..exceptions import FilesystemError, TransportError
from ..utils.logging import get_logger


logger = get_logger(__name__)

CHUNK_SIZE = 64 * 1024


@dataclass
class ApplyResult:
    """Counters for one apply pass."""

    downloaded: int = 0
    deleted: int = 0
    directories_removed: int = 0

    @property
    def files_changed(self) -> int:
        return self.downloaded + self.deleted


def apply_changes(
    client: BaseStoreClient,
    bucket: str,
    changes: Iterable[ChangeRecord],
    working_directory: str
) -> ApplyResult:
    """Bring the working directory in line with ``changes``.

    Deleted records remove the local file and, when it is left empty, its
    containing directory (never the working directory itself). Created and
    Updated records download the object and stamp it with the remote
    modification time. There is no rollback: a failure leaves earlier
    changes applied.

    Raises:
        FilesystemError: On local I/O failure or a path outside the working directory
        ObjectNotFound: If an object vanished since it was listed
        TransportError: On fetch failure
    """
    result = ApplyResult()

    for change in changes:
        _ensure_inside(change.local_path, working_directory)

        if change.kind == ChangeKind.DELETED:
            _delete(change, working_directory, result)
        else:
            _download(client, bucket, change)
            result.downloaded += 1

    logger.info(
        "Applied changes",
        working_directory=working_directory,
        downloaded=result.downloaded,
        deleted=result.deleted,
        directories_removed=result.directories_removed
    )
    return result


def _delete(change: ChangeRecord, working_directory: str, result: ApplyResult) -> None:
    path = change.local_path
    if not os.path.isfile(path):
        return

    try:
        os.remove(path)
        result.deleted += 1
        logger.debug("Deleted local file", path=path, key=change.remote_key)

        folder = change.folder_name
        if not _same_path(folder, working_directory) and os.path.isdir(folder) and not os.listdir(folder):
            os.rmdir(folder)
            result.directories_removed += 1
            logger.debug("Removed empty directory", path=folder)
    except OSError as e:
        raise FilesystemError(f"Cannot delete {path}: {e}", path=path) from e


def _download(client: BaseStoreClient, bucket: str, change: ChangeRecord) -> None:
    path = change.local_path

    try:
        os.makedirs(change.folder_name, exist_ok=True)
    except OSError as e:
        raise FilesystemError(f"Cannot create directory: {e}", path=change.folder_name) from e

    body = client.get_object(bucket, change.remote_key)

    with contextlib.closing(body) as stream:
        try:
            target = open(path, "wb")
        except OSError as e:
            raise FilesystemError(f"Cannot open {path} for writing: {e}", path=path) from e

        with target:
            while True:
                try:
                    chunk = stream.read(CHUNK_SIZE)
                except BotoCoreError as e:
                    raise TransportError(f"Transfer of {change.remote_key} failed: {e}") from e
                if not chunk:
                    break
                try:
                    target.write(chunk)
                except OSError as e:
                    raise FilesystemError(f"Cannot write {path}: {e}", path=path) from e

    timestamp = change.timestamp.timestamp()
    try:
        os.utime(path, (timestamp, timestamp))
    except OSError as e:
        raise FilesystemError(f"Cannot set modification time on {path}: {e}", path=path) from e

    logger.debug(
        "Downloaded object",
        key=change.remote_key,
        path=path,
        kind=change.kind.value
    )


def _same_path(left: str, right: str) -> bool:
    return os.path.normcase(os.path.abspath(left)) == os.path.normcase(os.path.abspath(right))


def _ensure_inside(path: str, working_directory: str) -> None:
    root = os.path.normcase(os.path.abspath(working_directory))
    target = os.path.normcase(os.path.abspath(path))
    try:
        inside = target != root and os.path.commonpath([root, target]) == root
    except ValueError:
        inside = False
    if not inside:
        raise FilesystemError(f"Refusing to touch path outside the working directory: {path}", path=path)

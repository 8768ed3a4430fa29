"""Diff engine classifying keys into created, updated and deleted changes."""

from typing import Dict, Iterable, List

from .models import ChangeKind, ChangeRecord, FileEntry, create_change_record
from ..utils.logging import get_logger


logger = get_logger(__name__)


def reconcile(
    remote: Iterable[FileEntry],
    local: Iterable[FileEntry],
    working_directory: str,
    prefix: str = ""
) -> List[ChangeRecord]:
    """Compare remote and local entries by key.

    A key only in ``remote`` is Created, a key only in ``local`` is Deleted,
    and a key in both is Updated when the sizes or the second-precision
    timestamps differ. Timestamps are compared through
    ``FileEntry.last_modified_key``, so sub-second differences do not count.

    Returns:
        Created records, then Updated records (both in remote order), then
        Deleted records (in local order)

    Raises:
        ValueError: If a key appears twice on the same side
    """
    remote = list(remote)
    local = list(local)
    remote_by_key = _index(remote, "remote")
    local_by_key = _index(local, "local")

    created: List[ChangeRecord] = []
    updated: List[ChangeRecord] = []
    deleted: List[ChangeRecord] = []

    for entry in remote:
        local_entry = local_by_key.get(entry.key)
        if local_entry is None:
            created.append(create_change_record(entry, ChangeKind.CREATED, working_directory, prefix))
        elif is_modified(entry, local_entry):
            updated.append(create_change_record(entry, ChangeKind.UPDATED, working_directory, prefix))

    for entry in local:
        if entry.key not in remote_by_key:
            deleted.append(create_change_record(entry, ChangeKind.DELETED, working_directory, prefix))

    logger.info(
        "Reconciliation complete",
        remote=len(remote),
        local=len(local),
        created=len(created),
        updated=len(updated),
        deleted=len(deleted)
    )

    return created + updated + deleted


def is_modified(remote: FileEntry, local: FileEntry) -> bool:
    return remote.size != local.size or remote.last_modified_key != local.last_modified_key


def _index(entries: List[FileEntry], side: str) -> Dict[str, FileEntry]:
    index: Dict[str, FileEntry] = {}
    for entry in entries:
        if entry.key in index:
            raise ValueError(f"Duplicate {side} key: {entry.key}")
        index[entry.key] = entry
    return index

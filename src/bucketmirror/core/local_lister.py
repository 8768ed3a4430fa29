"""Listing of the local mirror as file entries."""

import os
from typing import List

from .models import FileEntry, normalize_prefix
from ..exceptions import FilesystemError
from ..utils.logging import get_logger


logger = get_logger(__name__)


def list_local(working_directory: str, prefix: str = "") -> List[FileEntry]:
    """List every regular file under ``working_directory``.

    Keys are the prefix followed by the ``/``-separated path relative to the
    working directory, so ``/work/x/y.txt`` with prefix ``a/b`` becomes
    ``a/b/x/y.txt``.

    Args:
        working_directory: Root of the local mirror
        prefix: Configured key prefix

    Returns:
        Entries sorted by key

    Raises:
        FilesystemError: If any directory or file cannot be read
    """
    key_prefix = normalize_prefix(prefix)
    entries: List[FileEntry] = []

    _walk(working_directory, working_directory, key_prefix, entries)

    entries.sort(key=lambda entry: entry.key)

    logger.debug(
        "Listed local files",
        working_directory=working_directory,
        files=len(entries)
    )
    return entries


def _walk(working_directory: str, directory: str, key_prefix: str, entries: List[FileEntry]) -> None:
    try:
        with os.scandir(directory) as iterator:
            children = sorted(iterator, key=lambda child: child.name)
        directories = [child.path for child in children if child.is_dir()]
        files = [child.path for child in children if child.is_file()]
    except OSError as e:
        raise FilesystemError(f"Cannot list directory: {e}", path=directory) from e

    for path in directories:
        _walk(working_directory, path, key_prefix, entries)

    for path in files:
        relative_path = os.path.relpath(path, working_directory).replace(os.sep, "/")
        if relative_path.startswith("/"):
            relative_path = relative_path[1:]

        entries.append(FileEntry.from_local(key_prefix + relative_path, path))

"""Paginated listing of the remote store as file entries."""

from typing import List

from .models import FileEntry, relative_key
from ..api_clients.base import BaseStoreClient
from ..exceptions import RepositoryUnavailable
from ..utils.logging import get_logger


logger = get_logger(__name__)


def list_remote(
    client: BaseStoreClient,
    bucket: str,
    prefix: str = "",
    ignore_missing_root: bool = False
) -> List[FileEntry]:
    """List every object under ``bucket``/``prefix`` across all pages.

    Pages are requested with a marker that starts empty and then holds the
    key of the last object received.

    Args:
        client: Store client
        bucket: Bucket name
        prefix: Key prefix restricting the listing
        ignore_missing_root: Treat a missing bucket as an empty listing

    Returns:
        Entries sorted by key

    Raises:
        RepositoryUnavailable: If the bucket does not exist and
            ``ignore_missing_root`` is false
        TransportError: On any other listing failure
        ParseError: If a listing entry is malformed
    """
    prefix = prefix or ""
    if prefix and not prefix.endswith("/"):
        # "data" also matches "database.txt", which maps outside the data/ tree
        logger.warning(
            "Prefix does not end with '/', sibling keys sharing it will be mirrored too",
            bucket=bucket,
            prefix=prefix
        )

    entries: List[FileEntry] = []
    marker = ""
    pages = 0

    while True:
        try:
            page = client.list_objects(bucket, prefix, marker)
        except RepositoryUnavailable:
            if not ignore_missing_root:
                raise
            logger.warning(
                "Repository root not found, treating as empty",
                bucket=bucket,
                prefix=prefix
            )
            break

        pages += 1
        for obj in page.objects:
            # Folder placeholders cannot be materialized as local files
            relative = relative_key(obj.key, prefix)
            if not relative or obj.key.endswith("/"):
                continue
            entries.append(FileEntry.from_remote(obj))

        logger.debug(
            "Listed remote page",
            bucket=bucket,
            prefix=prefix,
            marker=marker,
            objects=len(page.objects),
            truncated=page.is_truncated
        )

        if not page.is_truncated or not page.objects:
            break
        marker = page.objects[-1].key

    entries.sort(key=lambda entry: entry.key)

    logger.debug("Listed remote objects", bucket=bucket, pages=pages, objects=len(entries))
    return entries

"""Metadata model shared by the listers, the reconciler and the applier."""

import os
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from enum import Enum
from typing import Any, Dict, Union

from ..api_clients.base import RemoteObject
from ..exceptions import FilesystemError, ParseError


SORTABLE_TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"
MAX_OBJECT_SIZE = 2 ** 63 - 1

# datetime.fromisoformat before 3.11 only takes 3 or 6 fractional digits
ISO_FRACTION = re.compile(r"(?<=:\d\d)\.(\d+)")


class ChangeKind(str, Enum):
    """Kinds of detected modifications."""
    CREATED = "Created"
    UPDATED = "Updated"
    DELETED = "Deleted"


@dataclass(frozen=True)
class FileEntry:
    """A thing with a key, a size and a last-modified time.

    Built either from a remote listing entry or from a local file; the
    ``key`` is the only field used to pair a remote entry with a local one.
    """

    key: str
    last_modified: datetime
    size: int
    last_modified_key: str = field(init=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "last_modified_key", sortable_timestamp(self.last_modified))

    @classmethod
    def from_remote(cls, obj: RemoteObject) -> "FileEntry":
        """Build an entry from a store listing entry.

        Raises:
            ParseError: If the timestamp or size cannot be parsed
        """
        return cls(
            key=obj.key,
            last_modified=parse_timestamp(obj.last_modified),
            size=parse_size(obj.size)
        )

    @classmethod
    def from_local(cls, key: str, path: str) -> "FileEntry":
        """Build an entry from a local file stored at ``path``.

        Raises:
            FilesystemError: If the file cannot be stat'ed
        """
        try:
            stat_result = os.stat(path)
        except OSError as e:
            raise FilesystemError(f"Cannot read file metadata: {e}", path=path) from e

        return cls(
            key=key,
            last_modified=datetime.fromtimestamp(stat_result.st_mtime, tz=timezone.utc),
            size=stat_result.st_size
        )


@dataclass(frozen=True)
class ChangeRecord:
    """One detected difference between the remote store and the local mirror."""

    kind: ChangeKind
    remote_key: str
    folder_name: str
    file_name: str
    timestamp: datetime

    @property
    def local_path(self) -> str:
        return os.path.join(self.folder_name, self.file_name)

    @property
    def display_path(self) -> str:
        return self.local_path

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-ready dictionary for reporting."""
        return {
            "kind": self.kind.value,
            "remote_key": self.remote_key,
            "folder_name": self.folder_name,
            "file_name": self.file_name,
            "timestamp": self.timestamp.isoformat()
        }


def sortable_timestamp(value: datetime) -> str:
    """Render a datetime as a second-precision UTC string such as ``2020-01-01T00:00:00Z``."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime(SORTABLE_TIMESTAMP_FORMAT)


def parse_timestamp(value: Union[str, datetime]) -> datetime:
    """Parse a store timestamp into an aware UTC datetime.

    Accepts ISO-8601 text (``2009-10-12T17:50:30.000Z``), HTTP dates
    (``Mon, 12 Oct 2009 17:50:30 GMT``) and datetime objects. Values without
    an offset are taken as UTC.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            raise ParseError("Empty timestamp")
        try:
            if text[-1] in "Zz":
                text = text[:-1] + "+00:00"
            text = ISO_FRACTION.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text, count=1)
            parsed = datetime.fromisoformat(text)
        except ValueError:
            try:
                parsed = parsedate_to_datetime(value)
            except (TypeError, ValueError) as e:
                raise ParseError(f"Invalid timestamp: {value!r}") from e
    else:
        raise ParseError(f"Invalid timestamp type: {type(value).__name__}")

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def parse_size(value: Union[str, int]) -> int:
    """Parse a store size into a non-negative 64-bit integer."""
    if isinstance(value, bool):
        raise ParseError(f"Invalid size: {value!r}")

    if isinstance(value, int):
        size = value
    elif isinstance(value, str):
        try:
            size = int(value.strip(), 10)
        except ValueError as e:
            raise ParseError(f"Invalid size: {value!r}") from e
    else:
        raise ParseError(f"Invalid size type: {type(value).__name__}")

    if size < 0 or size > MAX_OBJECT_SIZE:
        raise ParseError(f"Size out of range: {value!r}")
    return size


def normalize_prefix(prefix: str) -> str:
    """Return the prefix as used for local keys: empty, or ending with ``/``."""
    prefix = prefix or ""
    if prefix and not prefix.endswith("/"):
        prefix += "/"
    return prefix


def relative_key(key: str, prefix: str = "") -> str:
    """Strip the configured prefix and one leading ``/`` from an object key."""
    path = key
    if prefix:
        path = path[len(prefix):]
    if path.startswith("/"):
        path = path[1:]
    return path


def map_local_path(key: str, working_directory: str, prefix: str = "") -> str:
    """Map an object key onto a path under the working directory."""
    path = relative_key(key, prefix)
    return os.path.join(working_directory, path.replace("/", os.sep))


def create_change_record(
    entry: FileEntry,
    kind: ChangeKind,
    working_directory: str,
    prefix: str = ""
) -> ChangeRecord:
    """Build the change record for ``entry`` with its mapped local location."""
    path = map_local_path(entry.key, working_directory, prefix)
    folder_name, file_name = os.path.split(path)

    return ChangeRecord(
        kind=kind,
        remote_key=entry.key,
        folder_name=folder_name,
        file_name=file_name,
        timestamp=entry.last_modified
    )

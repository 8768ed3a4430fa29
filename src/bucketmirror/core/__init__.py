"""Core mirror logic package."""

from .models import (
    ChangeKind,
    ChangeRecord,
    FileEntry,
    create_change_record,
    map_local_path,
    parse_size,
    parse_timestamp
)
from .local_lister import list_local
from .remote_lister import list_remote
from .reconciler import reconcile
from .applier import ApplyResult, apply_changes
from .mirror import BucketMirror, CycleResult

__all__ = [
    "ChangeKind",
    "ChangeRecord",
    "FileEntry",
    "create_change_record",
    "map_local_path",
    "parse_size",
    "parse_timestamp",
    "list_local",
    "list_remote",
    "reconcile",
    "ApplyResult",
    "apply_changes",
    "BucketMirror",
    "CycleResult"
]

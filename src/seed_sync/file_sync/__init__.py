"""File sync - reconcile a local directory with a chunked object store."""

from seed_sync.file_sync.object_store import (
    GridFSObjectStore,
    ObjectStore,
    S3ObjectStore,
    build_object_store,
)
from seed_sync.file_sync.reconciler import Plan, ReconciliationPolicy, reconcile
from seed_sync.file_sync.sync_engine import FileSync, ItemResult, SyncReport, SyncState

__all__ = [
    "FileSync",
    "GridFSObjectStore",
    "ItemResult",
    "ObjectStore",
    "Plan",
    "ReconciliationPolicy",
    "S3ObjectStore",
    "SyncReport",
    "SyncState",
    "build_object_store",
    "reconcile",
]

"""Storage helpers."""

from .blob import BlobStore, LocalBlobStore, ObjectBlobStore, create_blob_store
from .records import RecordStore, merge_records, plan_reconcile, reconcile

__all__ = [
    "BlobStore",
    "LocalBlobStore",
    "ObjectBlobStore",
    "RecordStore",
    "create_blob_store",
    "merge_records",
    "plan_reconcile",
    "reconcile",
]

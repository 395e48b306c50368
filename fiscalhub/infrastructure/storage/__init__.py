"""Blob storage backends (local filesystem, Backend Service bucket)."""

from fiscalhub.infrastructure.storage.factory import BlobStoreFactory
from fiscalhub.infrastructure.storage.local_blob_store import LocalBlobStore
from fiscalhub.infrastructure.storage.remote_blob_store import RemoteBlobStore

__all__ = [
    "BlobStoreFactory",
    "LocalBlobStore",
    "RemoteBlobStore",
]

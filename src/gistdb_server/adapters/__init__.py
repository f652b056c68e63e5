"""Adapters layer - blob store clients and the collection snapshot repository."""

from gistdb_server.adapters.blob_store import AbstractBlobStore, FakeBlobStore, GistBlobStore
from gistdb_server.adapters.snapshot_repository import (
    AbstractSnapshotRepository,
    LastWriteWinsSnapshotRepository,
    decode_collection,
    decode_document,
    encode_collection,
    strict_loads,
)


__all__ = [
    "AbstractBlobStore",
    "AbstractSnapshotRepository",
    "FakeBlobStore",
    "GistBlobStore",
    "LastWriteWinsSnapshotRepository",
    "decode_collection",
    "decode_document",
    "encode_collection",
    "strict_loads",
]

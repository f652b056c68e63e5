"""Collection snapshots over whole-file blobs.

A collection is read as one snapshot (the whole decoded file) and written
back as one snapshot (the whole re-encoded map). Nothing narrower than a file
is ever sent to the blob store.

:class:`LastWriteWinsSnapshotRepository` performs no version check: two
writers that load overlapping snapshots both succeed and the later commit
silently replaces the earlier one. A conditional-write repository can use
``CollectionSnapshot.version`` without changing callers.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterator
from contextlib import contextmanager
import json
import logging
from typing import Any

from gistdb_server.adapters.blob_store import AbstractBlobStore, FileChanges
from gistdb_server.domain.errors import BadRequest, BlobStoreError, DecodeFailure, NotFound, Unauthorized
from gistdb_server.domain.model import (
    EMPTY_COLLECTION_CONTENT,
    CollectionSnapshot,
    Container,
)


logger = logging.getLogger(__name__)

DEFAULT_DESCRIPTION = "GistDB Database"


def _reject_constant(name: str) -> Any:
    raise ValueError(f"{name} is not a valid JSON value")


def strict_loads(text: str | bytes) -> Any:
    """``json.loads`` that refuses the ``NaN`` and ``Infinity`` literals."""
    return json.loads(text, parse_constant=_reject_constant)


def encode_collection(objects: dict[str, Any]) -> str:
    """Serialize a full collection map as compact JSON, keeping key order.

    Non-finite floats have no JSON form and are rejected with ``BadRequest``
    before anything is written.
    """
    try:
        return json.dumps(objects, separators=(",", ":"), ensure_ascii=False, allow_nan=False)
    except ValueError as exc:
        raise BadRequest(f"Object values must be valid JSON: {exc}") from exc


def decode_document(content: str | None, *, collection: str) -> Any:
    """Decode the content of one collection file, failing on invalid JSON."""
    if content is None:
        content = EMPTY_COLLECTION_CONTENT
    try:
        return strict_loads(content)
    except ValueError as exc:
        raise DecodeFailure(f"Collection '{collection}' does not contain valid JSON: {exc}") from exc


def decode_collection(content: str | None, *, collection: str) -> dict[str, Any]:
    """Decode collection content for a write path, failing on anything but an object."""
    decoded = decode_document(content, collection=collection)
    if not isinstance(decoded, dict):
        raise DecodeFailure(f"Collection '{collection}' must contain a JSON object, found {type(decoded).__name__}")
    return decoded


def decode_lenient(content: str | None) -> Any:
    """Decode file content for read-only dumps; undecodable content becomes None."""
    if content is None:
        content = EMPTY_COLLECTION_CONTENT
    try:
        return strict_loads(content)
    except ValueError:
        return None


class AbstractSnapshotRepository(ABC):
    """Load and commit whole-collection snapshots."""

    default_description: str = DEFAULT_DESCRIPTION

    @abstractmethod
    async def load_container(self, token: str, container_id: str) -> Container:
        raise NotImplementedError

    @abstractmethod
    async def load_snapshot(self, token: str, container_id: str, collection: str) -> CollectionSnapshot:
        raise NotImplementedError

    @abstractmethod
    async def write_files(self, token: str, container_id: str, files: FileChanges, description: str) -> None:
        """Patch whole files of a container, re-sending its description."""
        raise NotImplementedError

    async def commit_snapshot(self, token: str, snapshot: CollectionSnapshot) -> None:
        await self.write_files(
            token,
            snapshot.container_id,
            {snapshot.filename: encode_collection(snapshot.objects)},
            snapshot.description,
        )
        logger.debug(
            "Committed %d object(s) to %s/%s",
            len(snapshot.objects),
            snapshot.container_id,
            snapshot.collection_name,
        )


@contextmanager
def translated_upstream_errors(not_found_message: str | None = None) -> Iterator[None]:
    """Map upstream 404 and 401/403 statuses onto domain errors."""
    try:
        yield
    except BlobStoreError as exc:
        if exc.status == 404 and not_found_message:
            raise NotFound(not_found_message) from exc
        if exc.status in (401, 403):
            raise Unauthorized(f"Blob store rejected the credential: {exc.message}") from exc
        raise


class LastWriteWinsSnapshotRepository(AbstractSnapshotRepository):
    """Snapshot repository without concurrency detection."""

    def __init__(self, blob_store: AbstractBlobStore, default_description: str = DEFAULT_DESCRIPTION):
        self.blob_store = blob_store
        self.default_description = default_description

    async def load_container(self, token: str, container_id: str) -> Container:
        with translated_upstream_errors("Database not found"):
            return await self.blob_store.fetch_container(token, container_id)

    async def load_snapshot(self, token: str, container_id: str, collection: str) -> CollectionSnapshot:
        container = await self.load_container(token, container_id)
        file_entry = container.file_for(collection)
        if file_entry is None:
            raise NotFound("Collection not found")

        return CollectionSnapshot(
            container_id=container_id,
            collection_name=collection,
            description=container.description_or(self.default_description),
            objects=decode_collection(file_entry.content, collection=collection),
        )

    async def write_files(self, token: str, container_id: str, files: FileChanges, description: str) -> None:
        with translated_upstream_errors("Database not found"):
            await self.blob_store.patch_container(token, container_id, files, description=description)

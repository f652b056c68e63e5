"""Document store use cases over the blob store.

Databases map to containers, collections to ``<name>.json`` files and objects
to entries of the JSON object held by that file.

Every collection or object mutation is a full read-modify-write of the
target file:

1. load the container and decode the whole file into a snapshot
2. mutate the snapshot in memory
3. re-encode the complete map and patch the file, re-sending the container
   description so the remote never clears it

There is no locking. Two concurrent writers to the same collection both
succeed and the later patch discards the earlier one's change (lost update);
nothing detects or reports this.

Write paths fail fast on content that is not a JSON object so corrupt data is
never overwritten. The read-only database dump degrades per file to ``None``.
"""

from collections.abc import Callable
import logging
from typing import Any
import uuid

from gistdb_server.adapters.blob_store import AbstractBlobStore
from gistdb_server.adapters.snapshot_repository import (
    AbstractSnapshotRepository,
    LastWriteWinsSnapshotRepository,
    decode_document,
    decode_lenient,
    translated_upstream_errors,
)
from gistdb_server.config import Settings
from gistdb_server.domain.errors import BadRequest, Conflict, NotFound
from gistdb_server.domain.model import (
    EMPTY_COLLECTION_CONTENT,
    DatabaseCreated,
    ObjectWritten,
    collection_filename,
)
from gistdb_server.services.cache_service import AbstractSearchResultCache


logger = logging.getLogger(__name__)


def _new_object_id() -> str:
    return str(uuid.uuid4())


def _require(value: str | None, what: str) -> str:
    if not value or not value.strip():
        raise BadRequest(f"Missing {what}")
    return value


def _require_collection_name(name: str | None) -> str:
    name = _require(name, "collection name")
    if "/" in name:
        raise BadRequest("Collection name must not contain '/'")
    return name


class DocumentStore:
    """Database, collection and object operations.

    All operations take the caller's bearer token first; it is forwarded to
    the blob store unchanged.
    """

    def __init__(
        self,
        blob_store: AbstractBlobStore,
        snapshots: AbstractSnapshotRepository | None = None,
        cache: AbstractSearchResultCache | None = None,
        settings: Settings | None = None,
        id_factory: Callable[[], str] = _new_object_id,
    ):
        """Initialize the document store.

        Args:
            blob_store: Client for the remote containers
            snapshots: Snapshot repository (defaults to last-write-wins over ``blob_store``)
            cache: Search result cache to invalidate after mutations
            settings: Settings instance, used for the default description
            id_factory: ObjectID generator
        """
        self.blob_store = blob_store
        self.settings = settings
        default_description = settings.default_description if settings else "GistDB Database"
        self.snapshots = snapshots or LastWriteWinsSnapshotRepository(blob_store, default_description)
        self.cache = cache
        self._id_factory = id_factory

    async def _invalidate(self, database_id: str, collection: str | None = None) -> None:
        if self.cache is None:
            return
        if collection is None:
            dropped = await self.cache.invalidate_container(database_id)
        else:
            dropped = await self.cache.invalidate_collection(database_id, collection)
        if dropped:
            logger.debug("Invalidated %d cached search result(s) for %s/%s", dropped, database_id, collection or "*")

    # Databases

    async def create_database(self, token: str, name: str) -> DatabaseCreated:
        """Create a container holding one empty collection named ``name``."""
        name = _require_collection_name(name)
        with translated_upstream_errors():
            database_id = await self.blob_store.create_container(
                token,
                description=name,
                files={collection_filename(name): EMPTY_COLLECTION_CONTENT},
            )
        logger.info("Database initialized: %s", database_id)
        return DatabaseCreated(database_id=database_id, collection_name=name)

    async def delete_database(self, token: str, database_id: str) -> str:
        database_id = _require(database_id, "database id")
        with translated_upstream_errors("Database not found"):
            await self.blob_store.delete_container(token, database_id)
        await self._invalidate(database_id)
        logger.info("Database deleted: %s", database_id)
        return database_id

    # Collections

    async def create_collection(self, token: str, database_id: str, name: str) -> str:
        database_id = _require(database_id, "database id")
        name = _require_collection_name(name)

        container = await self.snapshots.load_container(token, database_id)
        if container.has_collection(name):
            raise Conflict("Collection already exists")

        await self.snapshots.write_files(
            token,
            database_id,
            {collection_filename(name): EMPTY_COLLECTION_CONTENT},
            container.description_or(self.snapshots.default_description),
        )
        await self._invalidate(database_id, name)
        logger.info("Collection created: %s/%s", database_id, name)
        return name

    async def get_collection(self, token: str, database_id: str, name: str | None = None) -> Any:
        """Return one decoded collection, or every file of the database.

        A named read returns whatever valid JSON the file holds, object or
        not, and raises ``DecodeFailure`` only for invalid JSON. Without
        ``name`` the result maps each file name to its decoded content; files
        that are not valid JSON map to ``None``.
        """
        database_id = _require(database_id, "database id")
        container = await self.snapshots.load_container(token, database_id)

        if name is not None:
            file_entry = container.file_for(name)
            if file_entry is None:
                raise NotFound("Collection not found")
            return decode_document(file_entry.content, collection=name)

        dump: dict[str, Any] = {}
        for filename, file_entry in container.files.items():
            decoded = decode_lenient(file_entry.content)
            if decoded is None and file_entry.content not in (None, "null"):
                logger.warning("File %s in database %s is not valid JSON", filename, database_id)
            dump[filename] = decoded
        return dump

    async def delete_collection(self, token: str, database_id: str, name: str) -> str:
        database_id = _require(database_id, "database id")
        name = _require_collection_name(name)

        container = await self.snapshots.load_container(token, database_id)
        if not container.has_collection(name):
            raise NotFound("Collection not found")

        await self.snapshots.write_files(
            token,
            database_id,
            {collection_filename(name): None},
            container.description_or(self.snapshots.default_description),
        )
        await self._invalidate(database_id, name)
        logger.info("Collection deleted: %s/%s", database_id, name)
        return name

    # Objects

    async def create_object(self, token: str, database_id: str, collection: str, value: Any) -> ObjectWritten:
        database_id = _require(database_id, "database id")
        collection = _require_collection_name(collection)

        snapshot = await self.snapshots.load_snapshot(token, database_id, collection)
        object_id = self._id_factory()
        snapshot.objects[object_id] = value
        await self.snapshots.commit_snapshot(token, snapshot)
        await self._invalidate(database_id, collection)

        logger.info("Object created in %s/%s: %s", database_id, collection, object_id)
        return ObjectWritten(object_id=object_id, value=value)

    async def update_object(
        self,
        token: str,
        database_id: str,
        collection: str,
        object_id: str,
        value: Any,
    ) -> ObjectWritten:
        """Replace an object's value wholesale (no field merge)."""
        database_id = _require(database_id, "database id")
        collection = _require_collection_name(collection)
        object_id = _require(object_id, "object id")

        snapshot = await self.snapshots.load_snapshot(token, database_id, collection)
        if object_id not in snapshot:
            raise NotFound("Object not found")
        snapshot.objects[object_id] = value
        await self.snapshots.commit_snapshot(token, snapshot)
        await self._invalidate(database_id, collection)

        logger.info("Object updated in %s/%s: %s", database_id, collection, object_id)
        return ObjectWritten(object_id=object_id, value=value)

    async def delete_object(self, token: str, database_id: str, collection: str, object_id: str) -> str:
        database_id = _require(database_id, "database id")
        collection = _require_collection_name(collection)
        object_id = _require(object_id, "object id")

        snapshot = await self.snapshots.load_snapshot(token, database_id, collection)
        if object_id not in snapshot:
            raise NotFound("Object not found")
        del snapshot.objects[object_id]
        await self.snapshots.commit_snapshot(token, snapshot)
        await self._invalidate(database_id, collection)

        logger.info("Object deleted from %s/%s: %s", database_id, collection, object_id)
        return object_id

"""Domain model - containers, collection snapshots and operation results.

The domain has no dependencies on infrastructure: it describes what a
database looks like once it has been read from the blob store, and what a
collection looks like once its file has been decoded.

Mapping:
- Database   -> remote container (gist), identified by an opaque id
- Collection -> one file ``<name>.json`` inside the container
- Object     -> one entry of the JSON object stored in that file
"""

from typing import Any

from pydantic import Field
from pydantic.dataclasses import dataclass


COLLECTION_FILE_SUFFIX = ".json"
EMPTY_COLLECTION_CONTENT = "{}"


def collection_filename(name: str) -> str:
    """Return the container file name backing a collection."""
    return f"{name}{COLLECTION_FILE_SUFFIX}"


def collection_name_from_filename(filename: str) -> str:
    """Inverse of :func:`collection_filename`; leaves foreign names untouched."""
    return filename.removesuffix(COLLECTION_FILE_SUFFIX)


# Value Objects (immutable)
@dataclass(frozen=True)
class ContainerFile:
    """A named text file inside a container.

    ``content`` is ``None`` when the remote API returned the file entry
    without a body.
    """

    content: str | None = None


@dataclass(frozen=True)
class DatabaseCreated:
    collection_name: str
    database_id: str = Field(min_length=1)


@dataclass(frozen=True)
class ObjectWritten:
    object_id: str = Field(min_length=1)
    value: Any = None


# Entities
@dataclass
class Container:
    """A point-in-time read of one remote container."""

    id: str
    description: str | None = None
    files: dict[str, ContainerFile] = Field(default_factory=dict)

    def has_collection(self, name: str) -> bool:
        return collection_filename(name) in self.files

    def file_for(self, name: str) -> ContainerFile | None:
        return self.files.get(collection_filename(name))

    def description_or(self, default: str) -> str:
        """Description to re-send on patches so the remote never clears it."""
        return self.description if self.description else default


@dataclass
class CollectionSnapshot:
    """Decoded content of one collection file.

    ``objects`` preserves the file's key order. ``version`` is reserved for a
    conditional-write token; the last-write-wins repository leaves it unset.
    """

    container_id: str
    collection_name: str
    description: str
    objects: dict[str, Any] = Field(default_factory=dict)
    version: str | None = None

    @property
    def filename(self) -> str:
        return collection_filename(self.collection_name)

    def __contains__(self, object_id: object) -> bool:
        return object_id in self.objects

    def __len__(self) -> int:
        return len(self.objects)

"""Domain layer - model and typed errors."""

from gistdb_server.domain.errors import (
    BadRequest,
    BlobStoreError,
    Conflict,
    DecodeFailure,
    GistDBError,
    NotFound,
    Unauthorized,
    UpstreamFailure,
)
from gistdb_server.domain.model import (
    CollectionSnapshot,
    Container,
    ContainerFile,
    DatabaseCreated,
    ObjectWritten,
    collection_filename,
    collection_name_from_filename,
)


__all__ = [
    "BadRequest",
    "BlobStoreError",
    "CollectionSnapshot",
    "Conflict",
    "Container",
    "ContainerFile",
    "DatabaseCreated",
    "DecodeFailure",
    "GistDBError",
    "NotFound",
    "ObjectWritten",
    "Unauthorized",
    "UpstreamFailure",
    "collection_filename",
    "collection_name_from_filename",
]

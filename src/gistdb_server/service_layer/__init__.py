"""Service layer - document store and search use cases."""

from gistdb_server.service_layer.document_store import DocumentStore
from gistdb_server.service_layer.search_service import SearchOutcome, SearchService


__all__ = ["DocumentStore", "SearchOutcome", "SearchService"]

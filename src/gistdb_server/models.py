"""Request and response models for the HTTP API."""

from typing import Any

from pydantic import BaseModel, Field


class CreateDatabaseRequest(BaseModel):
    name: str = Field(min_length=1)


class DeleteDatabaseRequest(BaseModel):
    gist_id: str = Field(min_length=1)


class CreateCollectionRequest(BaseModel):
    gist_id: str = Field(min_length=1)
    name: str = Field(min_length=1)


class CollectionRequest(BaseModel):
    """Identifies one collection (get and delete)."""

    gist_id: str = Field(min_length=1)
    collection_name: str = Field(min_length=1)


class CreateObjectRequest(CollectionRequest):
    data: Any


class UpdateObjectRequest(CollectionRequest):
    object_id: str = Field(min_length=1)
    data: Any


class DeleteObjectRequest(CollectionRequest):
    object_id: str = Field(min_length=1)


class SearchRequest(CollectionRequest):
    query: str
    field: str | None = None


class ApiResponse(BaseModel):
    """Envelope returned by every API route."""

    status: int
    data: Any = None
    message: str = ""
    error: str = ""

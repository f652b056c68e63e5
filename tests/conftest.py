"""Shared test fixtures and configuration."""

import os

import pytest


# Complete test environment that overrides ALL possible config values
TEST_ENV = {
    "GITHUB_API_URL": "https://api.github.test",
    "GITHUB_USER_AGENT": "GistDB-API",
    "HTTP_TIMEOUT": "5",
    "DEFAULT_DESCRIPTION": "GistDB Database",
    "INDEX_GRANULARITY": "10",
    "BLOOM_FILTER_BITS": "100000",
    "BLOOM_FILTER_HASH_COUNT": "1",
    "SPARSE_INDEX_ENABLED": "true",
    "SPARSE_INDEX_SKIP_ON_ABSENT": "false",
    "SEARCH_CACHE_ENABLED": "true",
    "SEARCH_CACHE_MAX_ENTRIES": "128",
    "SEARCH_CACHE_TTL_SECONDS": "0",
    "SEARCH_CACHE_BASE_URL": "https://gistdb.com",
    "HOST": "127.0.0.1",
    "PORT": "8787",
    "ENVIRONMENT": "test",
    "LOG_LEVEL": "info",
    "LOG_JSON": "false",
    "OTEL_EXPORTER_ENDPOINT": "",
    # Proxy settings - ensure they're cleared for tests
    "http_proxy": "",
    "https_proxy": "",
    "all_proxy": "",
    "no_proxy": "",
}


# Set environment variables immediately when conftest.py is loaded
for key, value in TEST_ENV.items():
    os.environ[key] = value

from gistdb_server.adapters.blob_store import FakeBlobStore
from gistdb_server.adapters.snapshot_repository import LastWriteWinsSnapshotRepository
from gistdb_server.config import Settings
from gistdb_server.service_layer.document_store import DocumentStore
from gistdb_server.service_layer.search_service import SearchService
from gistdb_server.services.cache_service import InMemorySearchResultCache


TOKEN = "ghp_test_token"


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Reset environment variables to the test defaults before each test."""
    for key, value in TEST_ENV.items():
        monkeypatch.setenv(key, value)


@pytest.fixture
def token() -> str:
    return TOKEN


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None)


@pytest.fixture
def blob_store() -> FakeBlobStore:
    return FakeBlobStore()


@pytest.fixture
def search_cache() -> InMemorySearchResultCache:
    return InMemorySearchResultCache(max_entries=128)


@pytest.fixture
def snapshots(blob_store, settings) -> LastWriteWinsSnapshotRepository:
    return LastWriteWinsSnapshotRepository(blob_store, settings.default_description)


@pytest.fixture
def document_store(blob_store, snapshots, search_cache, settings) -> DocumentStore:
    return DocumentStore(blob_store, snapshots=snapshots, cache=search_cache, settings=settings)


@pytest.fixture
def search_service(snapshots, search_cache, settings) -> SearchService:
    return SearchService(snapshots, cache=search_cache, settings=settings)

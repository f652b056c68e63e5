"""Tests for runtime health."""

from types import SimpleNamespace

import pytest

from gistdb_server.runtime.health import build_health_endpoint
from gistdb_server.services.cache_service import InMemorySearchResultCache, NullSearchResultCache


def _request(blob_store=None):
    return SimpleNamespace(app=SimpleNamespace(state=SimpleNamespace(blob_store=blob_store)))


@pytest.mark.unit
@pytest.mark.asyncio
async def test_health_reports_dependencies(settings, blob_store):
    endpoint = build_health_endpoint(settings, InMemorySearchResultCache(max_entries=4))

    response = await endpoint(_request(blob_store))

    body = response.body.decode()
    assert response.status_code == 200
    assert '"overall":"healthy"' in body
    assert '"status":"configured"' in body
    assert '"backend":"FakeBlobStore"' in body
    assert '"max_entries":4' in body


@pytest.mark.unit
@pytest.mark.asyncio
async def test_health_without_blob_store(settings):
    endpoint = build_health_endpoint(settings, NullSearchResultCache())

    response = await endpoint(_request())

    body = response.body.decode()
    assert '"status":"missing"' in body
    assert '"stats":null' in body

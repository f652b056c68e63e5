"""Tests for the gist blob store client and its in-memory fake."""

import json

import httpx
import pytest

from gistdb_server.adapters.blob_store import FakeBlobStore, GistBlobStore, container_from_payload
from gistdb_server.domain.errors import BlobStoreError, UpstreamFailure


def make_store(settings, handler) -> GistBlobStore:
    client = httpx.AsyncClient(base_url=settings.github_api_url, transport=httpx.MockTransport(handler))
    return GistBlobStore(settings, client=client)


class TestContainerFromPayload:
    def test_decodes_files_and_description(self):
        container = container_from_payload(
            "abc",
            {"id": "abc", "description": "todos", "files": {"items.json": {"content": "{}"}}},
        )

        assert container.id == "abc"
        assert container.description == "todos"
        assert container.has_collection("items")
        assert container.file_for("items").content == "{}"

    def test_missing_content_and_non_object_entries(self):
        container = container_from_payload("abc", {"files": {"a.json": {}, "b.json": "junk"}})

        assert container.file_for("a").content is None
        assert not container.has_collection("b")
        assert container.description is None

    @pytest.mark.parametrize("payload", [None, [], "text", {"files": ["a"]}])
    def test_malformed_payload(self, payload):
        with pytest.raises(BlobStoreError) as exc_info:
            container_from_payload("abc", payload)

        assert exc_info.value.status == 502


class TestGistBlobStore:
    @pytest.mark.asyncio
    async def test_fetch_sends_auth_headers(self, settings):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["request"] = request
            return httpx.Response(
                200,
                json={"id": "g1", "description": "d", "files": {"items.json": {"content": '{"a":1}'}}},
            )

        async with make_store(settings, handler) as store:
            container = await store.fetch_container("tok", "g1")

        request = seen["request"]
        assert request.method == "GET"
        assert request.url.path == "/gists/g1"
        assert request.headers["authorization"] == "Bearer tok"
        assert request.headers["user-agent"] == "GistDB-API"
        assert request.headers["accept"] == "application/vnd.github.v3+json"
        assert container.file_for("items").content == '{"a":1}'

    @pytest.mark.asyncio
    async def test_patch_body_deletes_with_null(self, settings):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["body"] = json.loads(request.content)
            seen["method"] = request.method
            return httpx.Response(200, json={"id": "g1"})

        store = make_store(settings, handler)
        await store.patch_container("tok", "g1", {"a.json": "{}", "b.json": None}, description="keep")

        assert seen["method"] == "PATCH"
        assert seen["body"] == {"files": {"a.json": {"content": "{}"}, "b.json": None}, "description": "keep"}

    @pytest.mark.asyncio
    async def test_patch_without_description_omits_it(self, settings):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={})

        store = make_store(settings, handler)
        await store.patch_container("tok", "g1", {"a.json": "{}"})

        assert "description" not in seen["body"]

    @pytest.mark.asyncio
    async def test_create_returns_id_and_is_private(self, settings):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["body"] = json.loads(request.content)
            return httpx.Response(201, json={"id": "new-gist"})

        store = make_store(settings, handler)
        container_id = await store.create_container("tok", "todos", {"todos.json": "{}"})

        assert container_id == "new-gist"
        assert seen["body"] == {
            "description": "todos",
            "public": False,
            "files": {"todos.json": {"content": "{}"}},
        }

    @pytest.mark.asyncio
    async def test_create_without_id_is_upstream_failure(self, settings):
        store = make_store(settings, lambda request: httpx.Response(201, json={}))

        with pytest.raises(BlobStoreError) as exc_info:
            await store.create_container("tok", "todos", {})

        assert exc_info.value.status == 502

    @pytest.mark.asyncio
    async def test_delete_accepts_empty_body(self, settings):
        store = make_store(settings, lambda request: httpx.Response(204))

        await store.delete_container("tok", "g1")

    @pytest.mark.asyncio
    async def test_error_status_carries_upstream_message(self, settings):
        store = make_store(settings, lambda request: httpx.Response(404, json={"message": "Not Found"}))

        with pytest.raises(BlobStoreError) as exc_info:
            await store.fetch_container("tok", "missing")

        assert exc_info.value.status == 404
        assert exc_info.value.message == "Not Found"
        assert str(exc_info.value) == "Blob store error 404: Not Found"
        assert isinstance(exc_info.value, UpstreamFailure)

    @pytest.mark.asyncio
    async def test_error_without_json_body_uses_reason(self, settings):
        store = make_store(settings, lambda request: httpx.Response(500, text="oops"))

        with pytest.raises(BlobStoreError) as exc_info:
            await store.fetch_container("tok", "g1")

        assert exc_info.value.status == 500
        assert exc_info.value.message == "Internal Server Error"

    @pytest.mark.asyncio
    async def test_non_json_success_body(self, settings):
        store = make_store(settings, lambda request: httpx.Response(200, text="<html>"))

        with pytest.raises(BlobStoreError) as exc_info:
            await store.fetch_container("tok", "g1")

        assert exc_info.value.status == 502

    @pytest.mark.asyncio
    async def test_network_error(self, settings):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        store = make_store(settings, handler)

        with pytest.raises(BlobStoreError) as exc_info:
            await store.fetch_container("tok", "g1")

        assert exc_info.value.status == 502

    @pytest.mark.asyncio
    async def test_timeout(self, settings):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("too slow", request=request)

        store = make_store(settings, handler)

        with pytest.raises(BlobStoreError) as exc_info:
            await store.fetch_container("tok", "g1")

        assert exc_info.value.status == 504


class TestFakeBlobStore:
    @pytest.mark.asyncio
    async def test_create_fetch_patch_delete(self):
        store = FakeBlobStore()

        container_id = await store.create_container("tok", "todos", {"todos.json": "{}"})
        await store.patch_container("tok", container_id, {"extra.json": "[]"})
        container = await store.fetch_container("tok", container_id)

        assert container.description == "todos"
        assert set(container.files) == {"todos.json", "extra.json"}

        await store.patch_container("tok", container_id, {"extra.json": None}, description="renamed")
        container = await store.fetch_container("tok", container_id)
        assert set(container.files) == {"todos.json"}
        assert container.description == "renamed"

        await store.delete_container("tok", container_id)
        with pytest.raises(BlobStoreError) as exc_info:
            await store.fetch_container("tok", container_id)
        assert exc_info.value.status == 404

    @pytest.mark.asyncio
    async def test_empty_token_is_rejected(self):
        store = FakeBlobStore()
        store.seed("g1", {"a.json": "{}"})

        with pytest.raises(BlobStoreError) as exc_info:
            await store.fetch_container("", "g1")

        assert exc_info.value.status == 401

    @pytest.mark.asyncio
    async def test_fetch_returns_a_copy(self):
        store = FakeBlobStore()
        store.seed("g1", {"a.json": "{}"})

        container = await store.fetch_container("tok", "g1")
        container.files.clear()

        assert store.raw_content("g1", "a.json") == "{}"

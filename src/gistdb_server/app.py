"""Main ASGI application entry point.

Routes:
    GET    /                     API information
    GET    /health               Service health
    GET    /metrics              Prometheus metrics
    POST   /api/databases        Create a database
    DELETE /api/databases        Delete a database
    POST   /api/collections      Create a collection
    POST   /api/collections/get  Get one collection
    DELETE /api/collections      Delete a collection
    GET    /api/{gist_id}        Get a collection (?collection_name=) or the whole database
    POST   /api/objects          Create an object
    PUT    /api/objects          Replace an object
    DELETE /api/objects          Delete an object
    POST   /api/search           Substring search over one collection

Every API route answers with the envelope ``{status, data, message, error}``.

Usage:
    python -m gistdb_server.app
"""

from collections.abc import Awaitable, Callable
from contextlib import asynccontextmanager
import logging
from typing import Any, TypeVar, cast

from pydantic import BaseModel, ValidationError
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.routing import Route

from gistdb_server import __version__
from gistdb_server.adapters.blob_store import AbstractBlobStore, GistBlobStore
from gistdb_server.adapters.snapshot_repository import LastWriteWinsSnapshotRepository, strict_loads
from gistdb_server.config import Settings
from gistdb_server.domain.errors import BadRequest, BlobStoreError, GistDBError, Unauthorized
from gistdb_server.models import (
    ApiResponse,
    CollectionRequest,
    CreateCollectionRequest,
    CreateDatabaseRequest,
    CreateObjectRequest,
    DeleteDatabaseRequest,
    DeleteObjectRequest,
    SearchRequest,
    UpdateObjectRequest,
)
from gistdb_server.observability.context import bind_request_fields
from gistdb_server.observability.logging import configure_logging
from gistdb_server.observability.metrics import (
    REQUEST_COUNT,
    REQUEST_LATENCY,
    get_metrics,
    get_metrics_content_type,
    track_latency,
)
from gistdb_server.observability.tracing import TraceContextMiddleware, configure_trace_exporter, init_tracing
from gistdb_server.runtime.health import build_health_endpoint
from gistdb_server.service_layer.document_store import DocumentStore
from gistdb_server.service_layer.search_service import SearchService
from gistdb_server.services.cache_service import (
    AbstractSearchResultCache,
    InMemorySearchResultCache,
    NullSearchResultCache,
)


logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)
Endpoint = Callable[[Request], Awaitable[Response]]


def api_response(status: int, data: Any = None, message: str = "", error: str = "") -> JSONResponse:
    envelope = ApiResponse(status=status, data=data, message=message, error=error)
    return JSONResponse(envelope.model_dump(), status_code=status)


def get_auth_token(request: Request) -> str:
    """Extract the bearer credential from the Authorization header."""
    header = request.headers.get("authorization")
    if not header:
        raise Unauthorized("Authorization header required")
    token = header.removeprefix("Bearer ").strip()
    if not token:
        raise Unauthorized("Authorization header required")
    return token


async def parse_body(request: Request, model: type[ModelT]) -> ModelT:
    try:
        payload = strict_loads(await request.body())
    except ValueError as exc:
        raise BadRequest("Invalid request body") from exc
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise BadRequest(f"Invalid request body: {exc.error_count()} validation error(s)") from exc


def instrumented(route: str, endpoint: Endpoint) -> Endpoint:
    """Record latency and status of one route."""

    async def wrapper(request: Request) -> Response:
        status = "500"
        try:
            with track_latency(REQUEST_LATENCY, route=route):
                response = await endpoint(request)
            status = str(response.status_code)
            return response
        except GistDBError as exc:
            status = str(exc.status_code)
            raise
        finally:
            REQUEST_COUNT.labels(route=route, status=status).inc()

    return wrapper


async def handle_gistdb_error(request: Request, exc: Exception) -> Response:
    exc = cast(GistDBError, exc)
    if isinstance(exc, BlobStoreError):
        logger.error("Blob store failure on %s %s: %s", request.method, request.url.path, exc)
    elif exc.status_code >= 500:
        logger.error("Request %s %s failed: %s", request.method, request.url.path, exc.message)
    else:
        logger.info("Request %s %s rejected (%s): %s", request.method, request.url.path, exc.kind, exc.message)
    return api_response(exc.status_code, error=exc.message)


def build_api_routes(store: DocumentStore, search: SearchService) -> list[Route]:
    """Create the database, collection, object and search routes."""

    async def create_database(request: Request) -> Response:
        token = get_auth_token(request)
        payload = await parse_body(request, CreateDatabaseRequest)
        created = await store.create_database(token, payload.name)
        return api_response(
            201,
            {"gist_id": created.database_id, "collection_name": created.collection_name},
            "Database initialized",
        )

    async def delete_database(request: Request) -> Response:
        token = get_auth_token(request)
        payload = await parse_body(request, DeleteDatabaseRequest)
        bind_request_fields(database_id=payload.gist_id)
        await store.delete_database(token, payload.gist_id)
        return api_response(200, {"deleted_gist": payload.gist_id}, "Database deleted")

    async def create_collection(request: Request) -> Response:
        token = get_auth_token(request)
        payload = await parse_body(request, CreateCollectionRequest)
        bind_request_fields(database_id=payload.gist_id, collection=payload.name)
        await store.create_collection(token, payload.gist_id, payload.name)
        return api_response(201, {"collection_name": payload.name}, "Collection created")

    async def get_collection_by_body(request: Request) -> Response:
        token = get_auth_token(request)
        payload = await parse_body(request, CollectionRequest)
        bind_request_fields(database_id=payload.gist_id, collection=payload.collection_name)
        data = await store.get_collection(token, payload.gist_id, payload.collection_name)
        return api_response(200, data, "Collection contents")

    async def get_database(request: Request) -> Response:
        token = get_auth_token(request)
        gist_id = request.path_params.get("gist_id", "")
        if not gist_id:
            raise BadRequest("Missing gist ID")
        collection_name = request.query_params.get("collection_name")
        bind_request_fields(database_id=gist_id, collection=collection_name)
        data = await store.get_collection(token, gist_id, collection_name)
        message = "Collection contents" if collection_name is not None else "Database contents"
        return api_response(200, data, message)

    async def delete_collection(request: Request) -> Response:
        token = get_auth_token(request)
        payload = await parse_body(request, CollectionRequest)
        bind_request_fields(database_id=payload.gist_id, collection=payload.collection_name)
        await store.delete_collection(token, payload.gist_id, payload.collection_name)
        return api_response(200, {"deleted_collection": payload.collection_name}, "Collection deleted")

    async def create_object(request: Request) -> Response:
        token = get_auth_token(request)
        payload = await parse_body(request, CreateObjectRequest)
        bind_request_fields(database_id=payload.gist_id, collection=payload.collection_name)
        written = await store.create_object(token, payload.gist_id, payload.collection_name, payload.data)
        return api_response(201, {"object_id": written.object_id, "data": written.value}, "Object created")

    async def update_object(request: Request) -> Response:
        token = get_auth_token(request)
        payload = await parse_body(request, UpdateObjectRequest)
        bind_request_fields(database_id=payload.gist_id, collection=payload.collection_name)
        written = await store.update_object(
            token, payload.gist_id, payload.collection_name, payload.object_id, payload.data
        )
        return api_response(200, {"updated": written.object_id}, "Object updated")

    async def delete_object(request: Request) -> Response:
        token = get_auth_token(request)
        payload = await parse_body(request, DeleteObjectRequest)
        bind_request_fields(database_id=payload.gist_id, collection=payload.collection_name)
        deleted = await store.delete_object(token, payload.gist_id, payload.collection_name, payload.object_id)
        return api_response(200, {"deleted": deleted}, "Object deleted")

    async def search_objects(request: Request) -> Response:
        token = get_auth_token(request)
        payload = await parse_body(request, SearchRequest)
        bind_request_fields(database_id=payload.gist_id, collection=payload.collection_name)
        outcome = await search.search(token, payload.gist_id, payload.collection_name, payload.query, payload.field)
        return api_response(200, outcome.object_ids, "Search completed")

    return [
        Route("/api/databases", instrumented("create_database", create_database), methods=["POST"]),
        Route("/api/databases", instrumented("delete_database", delete_database), methods=["DELETE"]),
        Route("/api/collections", instrumented("create_collection", create_collection), methods=["POST"]),
        Route("/api/collections/get", instrumented("get_collection", get_collection_by_body), methods=["POST"]),
        Route("/api/collections", instrumented("delete_collection", delete_collection), methods=["DELETE"]),
        Route("/api/objects", instrumented("create_object", create_object), methods=["POST"]),
        Route("/api/objects", instrumented("update_object", update_object), methods=["PUT"]),
        Route("/api/objects", instrumented("delete_object", delete_object), methods=["DELETE"]),
        Route("/api/search", instrumented("search", search_objects), methods=["POST"]),
        Route("/api/{gist_id}", instrumented("get_database", get_database), methods=["GET"]),
    ]


def build_search_cache(settings: Settings) -> AbstractSearchResultCache:
    if not settings.search_cache_enabled:
        return NullSearchResultCache()
    return InMemorySearchResultCache(
        max_entries=settings.search_cache_max_entries,
        ttl_seconds=settings.cache_ttl(),
        base_url=settings.search_cache_base_url,
    )


def create_app(
    settings: Settings | None = None,
    *,
    blob_store: AbstractBlobStore | None = None,
    cache: AbstractSearchResultCache | None = None,
) -> Starlette:
    """Create the ASGI application.

    Args:
        settings: Settings instance (loaded from the environment when omitted)
        blob_store: Blob store to use instead of the gist API client
        cache: Search result cache to use instead of one built from settings
    """
    settings = settings or Settings()
    blob_store = blob_store or GistBlobStore(settings)
    if cache is None:
        cache = build_search_cache(settings)

    snapshots = LastWriteWinsSnapshotRepository(blob_store, settings.default_description)
    store = DocumentStore(blob_store, snapshots=snapshots, cache=cache, settings=settings)
    search = SearchService(snapshots, cache=cache, settings=settings)

    @asynccontextmanager
    async def lifespan(app: Starlette):
        app.state.blob_store = blob_store
        app.state.document_store = store
        app.state.search_service = search
        try:
            yield
        finally:
            await blob_store.close()

    async def root_info(_: Request) -> JSONResponse:
        return JSONResponse(
            {
                "name": "GistDB",
                "version": __version__,
                "description": "A document database powered by GitHub Gists",
                "features": [
                    "Uses GitHub Gists as storage backend",
                    "Multiple collections per database",
                    "JSON document storage",
                    "Full CRUD operations",
                    "Substring search with cached results",
                    "GitHub token authentication",
                ],
                "endpoints": {
                    "health": {"GET /health": "Check API health status"},
                    "metrics": {"GET /metrics": "Prometheus metrics"},
                    "databases": {
                        "POST /api/databases": "Create a new database",
                        "GET /api/{gist_id}": "Get entire database contents",
                        "DELETE /api/databases": "Delete a database",
                    },
                    "collections": {
                        "POST /api/collections": "Create a new collection",
                        "POST /api/collections/get": "Get collection contents",
                        "DELETE /api/collections": "Delete a collection",
                    },
                    "objects": {
                        "POST /api/objects": "Create a new object",
                        "PUT /api/objects": "Update an existing object",
                        "DELETE /api/objects": "Delete an object",
                    },
                    "search": {"POST /api/search": "Search objects"},
                },
            }
        )

    async def metrics_endpoint(_: Request) -> Response:
        return Response(get_metrics(), media_type=get_metrics_content_type())

    routes = [
        Route("/", endpoint=root_info, methods=["GET"]),
        Route("/health", endpoint=build_health_endpoint(settings, cache), methods=["GET"]),
        Route("/metrics", endpoint=metrics_endpoint, methods=["GET"]),
        *build_api_routes(store, search),
    ]

    app = Starlette(
        debug=settings.is_debug(),
        routes=routes,
        middleware=[Middleware(TraceContextMiddleware)],
        exception_handlers={GistDBError: handle_gistdb_error},
        lifespan=lifespan,
    )
    app.state.blob_store = blob_store
    app.state.search_cache = cache
    return app


def main() -> None:
    """Main entry point for the HTTP server."""
    import uvicorn

    settings = Settings()
    configure_logging(settings.log_level, json_output=settings.log_json)
    provider = init_tracing()
    configure_trace_exporter(settings.otel_exporter_endpoint, provider)

    logger.info("Starting GistDB server on %s:%d", settings.host, settings.port)
    logger.info("Health check: http://%s:%d/health", settings.host, settings.port)

    uvicorn.run(
        create_app(settings),
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        log_config=None,  # Don't let uvicorn override our logging config
    )


if __name__ == "__main__":
    main()

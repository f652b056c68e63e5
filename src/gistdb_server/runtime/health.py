"""Health endpoint factory."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING

from starlette.responses import JSONResponse

from gistdb_server import __version__


if TYPE_CHECKING:
    from starlette.requests import Request

    from gistdb_server.config import Settings
    from gistdb_server.services.cache_service import AbstractSearchResultCache


def build_health_endpoint(settings: Settings, cache: AbstractSearchResultCache):
    """Return a coroutine function reporting service and dependency status."""

    async def health_check(request: Request) -> JSONResponse:
        blob_store = getattr(request.app.state, "blob_store", None)
        get_cache_stats = getattr(cache, "get_stats", None)

        return JSONResponse(
            {
                "status": {
                    "overall": "healthy",
                    "timestamp": datetime.now(timezone.utc).isoformat(),
                },
                "version": {
                    "api": __version__,
                    "environment": settings.environment,
                },
                "dependencies": {
                    "github_api": {
                        "status": "configured" if blob_store is not None else "missing",
                        "endpoint": settings.github_api_url,
                        "backend": type(blob_store).__name__ if blob_store is not None else None,
                    },
                    "search_cache": {
                        "enabled": settings.search_cache_enabled,
                        "stats": get_cache_stats() if get_cache_stats else None,
                    },
                },
            }
        )

    return health_check

"""Blob store adapters: authenticated access to named files inside remote containers.

Remote semantics (GitHub Gists):
- GET returns ``{description, files: {name: {content}}}``
- PATCH replaces the named files; a ``null`` file value deletes it, and a
  missing ``description`` leaves the description as it was
- POST creates a new container and returns its id
- DELETE removes the container

Every failure surfaces as :class:`BlobStoreError`. Nothing is retried here.
"""

from abc import ABC, abstractmethod
import copy
import logging
from typing import Any
import uuid

import httpx
from opentelemetry.trace import SpanKind

from gistdb_server.config import Settings
from gistdb_server.domain.errors import BlobStoreError
from gistdb_server.domain.model import Container, ContainerFile
from gistdb_server.observability.metrics import BLOB_STORE_CALLS
from gistdb_server.observability.tracing import create_span


logger = logging.getLogger(__name__)

FileChanges = dict[str, str | None]


def container_from_payload(container_id: str, payload: Any) -> Container:
    """Decode a container payload, raising BlobStoreError when malformed."""
    if not isinstance(payload, dict):
        raise BlobStoreError(502, "Malformed container payload: expected an object")

    raw_files = payload.get("files") or {}
    if not isinstance(raw_files, dict):
        raise BlobStoreError(502, "Malformed container payload: 'files' is not an object")

    files: dict[str, ContainerFile] = {}
    for name, raw in raw_files.items():
        # Non-object entries are not files (mirrors the remote's own shape)
        if not isinstance(raw, dict):
            continue
        content = raw.get("content")
        files[name] = ContainerFile(content=content if isinstance(content, str) else None)

    description = payload.get("description")
    return Container(
        id=str(payload.get("id") or container_id),
        description=description if isinstance(description, str) else None,
        files=files,
    )


class AbstractBlobStore(ABC):
    """Abstract client for the remote blob-hosting service."""

    @abstractmethod
    async def fetch_container(self, token: str, container_id: str) -> Container:
        raise NotImplementedError

    @abstractmethod
    async def patch_container(
        self,
        token: str,
        container_id: str,
        files: FileChanges,
        description: str | None = None,
    ) -> None:
        """Replace the content of ``files``; a ``None`` value deletes that file."""
        raise NotImplementedError

    @abstractmethod
    async def create_container(self, token: str, description: str, files: dict[str, str]) -> str:
        """Create a private container and return its id."""
        raise NotImplementedError

    @abstractmethod
    async def delete_container(self, token: str, container_id: str) -> None:
        raise NotImplementedError

    async def close(self) -> None:
        """Release network resources (no-op by default)."""
        return None


class GistBlobStore(AbstractBlobStore):
    """Blob store backed by the GitHub Gist REST API."""

    def __init__(self, settings: Settings, client: httpx.AsyncClient | None = None):
        """Initialize the gist client.

        Args:
            settings: Settings instance with API URL, user agent and timeout
            client: Optional pre-built client (tests pass one with a mock transport)
        """
        self.settings = settings
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=settings.github_api_url,
            timeout=httpx.Timeout(float(settings.http_timeout), connect=10.0),
        )

    async def __aenter__(self) -> "GistBlobStore":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    def _headers(self, token: str) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {token}",
            "User-Agent": self.settings.github_user_agent,
            "Accept": "application/vnd.github.v3+json",
            "Content-Type": "application/json",
        }

    async def _request(self, token: str, method: str, path: str, body: dict[str, Any] | None = None) -> Any:
        """Send one request and decode its JSON body (None for empty bodies)."""
        with create_span(
            f"blob_store.{method.lower()}",
            kind=SpanKind.CLIENT,
            attributes={"http.method": method, "http.route": path},
        ) as span:
            try:
                response = await self._client.request(method, path, json=body, headers=self._headers(token))
            except httpx.TimeoutException as exc:
                BLOB_STORE_CALLS.labels(method=method, status="timeout").inc()
                raise BlobStoreError(504, f"Blob store request timed out: {method} {path}") from exc
            except httpx.HTTPError as exc:
                BLOB_STORE_CALLS.labels(method=method, status="network_error").inc()
                raise BlobStoreError(502, f"Blob store request failed: {exc.__class__.__name__}: {exc}") from exc

            span.set_attribute("http.status_code", response.status_code)
            BLOB_STORE_CALLS.labels(method=method, status=str(response.status_code)).inc()

            if response.is_error:
                raise BlobStoreError(response.status_code, self._error_message(response))

            if not response.content:
                return None
            try:
                return response.json()
            except ValueError as exc:
                raise BlobStoreError(502, f"Blob store returned a non-JSON body for {method} {path}") from exc

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            payload = response.json()
        except ValueError:
            payload = None
        if isinstance(payload, dict) and isinstance(payload.get("message"), str):
            return payload["message"]
        return response.reason_phrase or f"HTTP {response.status_code}"

    async def fetch_container(self, token: str, container_id: str) -> Container:
        payload = await self._request(token, "GET", f"/gists/{container_id}")
        return container_from_payload(container_id, payload)

    async def patch_container(
        self,
        token: str,
        container_id: str,
        files: FileChanges,
        description: str | None = None,
    ) -> None:
        body: dict[str, Any] = {
            "files": {name: None if content is None else {"content": content} for name, content in files.items()}
        }
        if description is not None:
            body["description"] = description
        await self._request(token, "PATCH", f"/gists/{container_id}", body)
        logger.debug("Patched %d file(s) in container %s", len(files), container_id)

    async def create_container(self, token: str, description: str, files: dict[str, str]) -> str:
        body = {
            "description": description,
            "public": False,
            "files": {name: {"content": content} for name, content in files.items()},
        }
        payload = await self._request(token, "POST", "/gists", body)
        if not isinstance(payload, dict) or not payload.get("id"):
            raise BlobStoreError(502, "Blob store did not return a container id")
        container_id = str(payload["id"])
        logger.info("Created container %s", container_id)
        return container_id

    async def delete_container(self, token: str, container_id: str) -> None:
        await self._request(token, "DELETE", f"/gists/{container_id}")
        logger.info("Deleted container %s", container_id)


class FakeBlobStore(AbstractBlobStore):
    """In-memory blob store for testing and local runs.

    Follows the remote semantics, including ``None`` deleting a file and an
    omitted description leaving the stored one untouched.
    """

    def __init__(self) -> None:
        self._containers: dict[str, dict[str, Any]] = {}
        self.calls: list[tuple[str, str]] = []

    @staticmethod
    def _check_token(token: str) -> None:
        if not token:
            raise BlobStoreError(401, "Requires authentication")

    def _get(self, container_id: str) -> dict[str, Any]:
        container = self._containers.get(container_id)
        if container is None:
            raise BlobStoreError(404, "Not Found")
        return container

    async def fetch_container(self, token: str, container_id: str) -> Container:
        self._check_token(token)
        self.calls.append(("GET", container_id))
        stored = copy.deepcopy(self._get(container_id))
        return container_from_payload(container_id, {"id": container_id, **stored})

    async def patch_container(
        self,
        token: str,
        container_id: str,
        files: FileChanges,
        description: str | None = None,
    ) -> None:
        self._check_token(token)
        self.calls.append(("PATCH", container_id))
        container = self._get(container_id)
        if description is not None:
            container["description"] = description
        for name, content in files.items():
            if content is None:
                container["files"].pop(name, None)
            else:
                container["files"][name] = {"content": content}

    async def create_container(self, token: str, description: str, files: dict[str, str]) -> str:
        self._check_token(token)
        container_id = uuid.uuid4().hex
        self.calls.append(("POST", container_id))
        self._containers[container_id] = {
            "description": description,
            "public": False,
            "files": {name: {"content": content} for name, content in files.items()},
        }
        return container_id

    async def delete_container(self, token: str, container_id: str) -> None:
        self._check_token(token)
        self.calls.append(("DELETE", container_id))
        self._get(container_id)
        del self._containers[container_id]

    def raw_content(self, container_id: str, filename: str) -> str | None:
        """Stored text of one file, for assertions in tests."""
        file_entry = self._get(container_id)["files"].get(filename)
        return None if file_entry is None else file_entry["content"]

    def seed(self, container_id: str, files: dict[str, str], description: str = "seeded") -> None:
        """Install a container directly, bypassing create_container."""
        self._containers[container_id] = {
            "description": description,
            "public": False,
            "files": {name: {"content": content} for name, content in files.items()},
        }

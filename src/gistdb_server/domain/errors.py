"""Typed failures raised by the document store and its collaborators.

Each error carries a stable ``kind`` and the HTTP status the API layer maps it
to. Errors are raised where they are detected and translated into a response
envelope in exactly one place (the application's exception handler).
"""


class GistDBError(Exception):
    """Base class for all classified document-store failures."""

    kind = "internal_error"
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, str | int]:
        return {"kind": self.kind, "status": self.status_code, "message": self.message}


class BadRequest(GistDBError):
    """Malformed or missing required input."""

    kind = "bad_request"
    status_code = 400


class Unauthorized(GistDBError):
    """Missing or rejected bearer credential."""

    kind = "unauthorized"
    status_code = 401


class NotFound(GistDBError):
    """Container, collection or object does not exist."""

    kind = "not_found"
    status_code = 404


class Conflict(GistDBError):
    """Collection already exists."""

    kind = "conflict"
    status_code = 409


class DecodeFailure(GistDBError):
    """Stored collection content is not a JSON object."""

    kind = "decode_failure"
    status_code = 422


class UpstreamFailure(GistDBError):
    """The blob store failed or returned data that could not be used."""

    kind = "upstream_failure"
    status_code = 502


class BlobStoreError(UpstreamFailure):
    """Failure of a single blob store call.

    ``status`` is the upstream HTTP status when one was received, otherwise a
    synthetic gateway status (502, or 504 for timeouts).
    """

    def __init__(self, status: int, message: str):
        super().__init__(message)
        self.status = status

    def __str__(self) -> str:
        return f"Blob store error {self.status}: {self.message}"

"""Error taxonomy shared by the catalog services and the HTTP layer."""

from __future__ import annotations

from typing import Optional


class CatalogError(Exception):
    """Base error carrying the HTTP status the request should fail with."""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None, status_code: Optional[int] = None) -> None:
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"error": self.message}


class ValidationError(CatalogError):
    """A required query parameter is missing or the input cannot be processed."""

    status_code = 400
    default_message = "Invalid request"


class NotFoundError(CatalogError):
    """The remote search returned no match."""

    status_code = 404
    default_message = "Not found"


class UpstreamError(CatalogError):
    """The remote API answered with a non-2xx status.

    ``raw`` keeps the upstream body for diagnostics; it is logged but never
    returned to the client.
    """

    default_message = "Upstream request failed"

    def __init__(self, message: Optional[str] = None, status_code: int = 502, raw: Optional[str] = None) -> None:
        super().__init__(message, status_code)
        self.raw = raw

    def with_message(self, message: str) -> "UpstreamError":
        return UpstreamError(message, status_code=self.status_code, raw=self.raw)


class InternalError(CatalogError):
    status_code = 500


__all__ = [
    "CatalogError",
    "ValidationError",
    "NotFoundError",
    "UpstreamError",
    "InternalError",
]

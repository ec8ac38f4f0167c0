"""Exceptions raised by the site.

- AuthorizationFailure: a caller failed to prove it may perform the call.
  Nothing has been changed when it is raised.
- InvalidRequest: the call itself is malformed. Nothing has been changed.
- UpstreamFailure: the backend API failed. The API client turns it into an
  empty `ApiResponse`; pages render "not found" or an empty listing.

Parsing content never raises: malformed markup passes through as raw HTML.
"""

from typing import Any


class SiteError(Exception):
    """Base exception for all site errors."""

    status_code = 500

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_response(self) -> dict[str, Any]:
        """Convert to the JSON body returned to HTTP callers."""
        body: dict[str, Any] = {"error": self.message}
        if self.details:
            body["details"] = self.details
        return body


class AuthorizationFailure(SiteError):
    """Shared secret or admin session missing or wrong."""

    status_code = 401

    def __init__(
        self, message: str = "Unauthorized", details: dict[str, Any] | None = None
    ) -> None:
        super().__init__(message, details)


class InvalidRequest(SiteError):
    """Unrecognised revalidation kind, missing slug, or malformed body."""

    status_code = 400


class UpstreamFailure(SiteError):
    """The backend API answered with an error or could not be reached."""

    def __init__(
        self,
        message: str,
        status_code: int = 502,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.status_code = status_code


__all__ = ["AuthorizationFailure", "InvalidRequest", "SiteError", "UpstreamFailure"]

"""Exception hierarchy shared by every ghostpost layer.

Core modules raise these; the agent tools and the CLI turn them into
user-facing messages, using :attr:`GhostpostError.suggestion` when set.
"""

from __future__ import annotations


class GhostpostError(Exception):
    """Base error for ghostpost operations."""

    default_suggestion: str | None = None

    def __init__(self, message: str, *, suggestion: str | None = None) -> None:
        super().__init__(message)
        self.suggestion = suggestion or self.default_suggestion

    def to_dict(self) -> dict[str, object]:
        """Render as a failed tool result."""
        result: dict[str, object] = {"success": False, "error": str(self)}
        if self.suggestion:
            result["suggestion"] = self.suggestion
        return result


class ConfigurationError(GhostpostError):
    """Missing or malformed credentials, URL or model settings."""

    default_suggestion = "Check the [ghost] and [images] sections of .ghostpost.toml"


class ValidationError(GhostpostError):
    """Post data is malformed or incomplete."""


class StateError(GhostpostError):
    """The operation is not valid for the session's current state."""


class UnsupportedOperationError(GhostpostError):
    """The requested value cannot be expressed on this backend."""


class UpstreamError(GhostpostError):
    """A call to Ghost, the CDN or the image model failed."""

    default_suggestion = "Check your Ghost and image model credentials and try again"

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        suggestion: str | None = None,
    ) -> None:
        super().__init__(message, suggestion=suggestion)
        self.status_code = status_code


class NotFoundError(UpstreamError):
    """Ghost has no post with the requested id."""

    default_suggestion = "List posts to find a valid id"


class ConflictError(UpstreamError):
    """Ghost rejected an edit because the post changed since it was read."""

    default_suggestion = "Select the post again to pick up the latest version"

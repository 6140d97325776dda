from __future__ import annotations


class PRViewError(Exception):
    """Base class for errors raised by prview."""


class GatewayError(PRViewError):
    """Raised when a GitHub read request fails.

    Attributes:
        kind: Short category of the failure: "network", "auth", "not_found",
            "http" or "malformed".
        message: Human readable cause.
    """

    def __init__(self, kind: str, message: str) -> None:
        self.kind = kind
        self.message = message
        super().__init__(message)


class ProcessError(PRViewError):
    """Raised when handing off to an external program (diff viewer, browser) fails."""

    def __init__(self, action: str, message: str) -> None:
        self.action = action
        self.message = message
        super().__init__(f"{action}: {message}")


class StartupError(PRViewError):
    """Raised when the current repository cannot be resolved."""

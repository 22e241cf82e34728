"""Domain exceptions for the response team scheduler.

All domain-specific exceptions inherit from ``ResponseTeamError`` so
callers can catch the full family with a single ``except`` clause when needed.
"""

from __future__ import annotations

from typing import Any


class ResponseTeamError(Exception):
    """Base exception for all response team errors."""

    def __init__(self, message: str = "", details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.details: dict[str, Any] = details or {}


class TeamDefinitionError(ResponseTeamError):
    """Raised when a team definition is malformed.

    Examples: a non-positive ``spawn_per_players`` divisor, a negative role
    cap, or a roster entry with a negative probability or amount.
    """

    def __init__(
        self,
        message: str = "Invalid team definition",
        team_id: str = "",
        issues: list[str] | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.team_id = team_id
        self.issues: list[str] = issues or []


class ProvisionError(ResponseTeamError):
    """Raised by an area loader when a transport template cannot be loaded."""

    def __init__(
        self,
        message: str = "Area provisioning failed",
        template: str = "",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.template = template


class ConfigError(ResponseTeamError, ValueError):
    """Raised when scheduler configuration cannot be parsed."""

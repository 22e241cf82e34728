"""Team registry for the response team scheduler.

Holds the static ``TeamDefinition`` catalogue keyed by team id.  Teams are
registered imperatively or loaded in bulk from a team file (see
``response_teams.infrastructure.serialization``).  Every registration is
validated, so a registry never holds a definition the composer cannot use.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable, Iterator

from response_teams.domain.values import TeamDefinition

logger = logging.getLogger(__name__)


class TeamRegistry:
    """Lookup table of team definitions keyed by ``team_id``.

    Usage::

        teams = TeamRegistry()
        teams.register(TeamDefinition(team_id="ert", ...))
        teams.get("ert")
    """

    def __init__(self, teams: Iterable[TeamDefinition] = ()) -> None:
        self._teams: dict[str, TeamDefinition] = {}
        self._lock = threading.Lock()
        for team in teams:
            self.register(team)

    # ------------------------------------------------------------------ #
    #  Registration                                                       #
    # ------------------------------------------------------------------ #

    def register(self, team: TeamDefinition, *, overwrite: bool = False) -> None:
        """Validate and register *team*.

        Raises ``ValueError`` on a duplicate id unless *overwrite* is set.
        """
        team.validate()
        with self._lock:
            if not overwrite and team.team_id in self._teams:
                raise ValueError(
                    f"Team '{team.team_id}' is already registered. "
                    "Pass overwrite=True to replace."
                )
            self._teams[team.team_id] = team
        logger.debug("Registered team %s", team.team_id)

    # ------------------------------------------------------------------ #
    #  Lookup                                                              #
    # ------------------------------------------------------------------ #

    def get(self, team_id: str) -> TeamDefinition:
        """Return the team registered under *team_id*.

        Raises ``KeyError`` if not found.
        """
        with self._lock:
            try:
                return self._teams[team_id]
            except KeyError:
                available = sorted(self._teams)
                raise KeyError(
                    f"Team '{team_id}' not registered. Available: {available}"
                ) from None

    def get_or_none(self, team_id: str) -> TeamDefinition | None:
        """Return the team or ``None`` if not found."""
        with self._lock:
            return self._teams.get(team_id)

    def has(self, team_id: str) -> bool:
        with self._lock:
            return team_id in self._teams

    def list_ids(self) -> list[str]:
        """Return registered team ids in registration order."""
        with self._lock:
            return list(self._teams)

    # ------------------------------------------------------------------ #
    #  Removal                                                             #
    # ------------------------------------------------------------------ #

    def unregister(self, team_id: str) -> TeamDefinition:
        """Remove and return the team. Raises ``KeyError`` if missing."""
        with self._lock:
            try:
                return self._teams.pop(team_id)
            except KeyError:
                raise KeyError(
                    f"Cannot unregister '{team_id}': not found."
                ) from None

    def clear(self) -> None:
        with self._lock:
            self._teams.clear()

    # ------------------------------------------------------------------ #
    #  Dunder helpers                                                      #
    # ------------------------------------------------------------------ #

    def __len__(self) -> int:
        with self._lock:
            return len(self._teams)

    def __iter__(self) -> Iterator[TeamDefinition]:
        with self._lock:
            snapshot = list(self._teams.values())
        return iter(snapshot)

    def __contains__(self, team_id: object) -> bool:
        """Support ``"ert" in teams``."""
        if not isinstance(team_id, str):
            return False
        return self.has(team_id)

    def __repr__(self) -> str:
        return f"<TeamRegistry [{', '.join(self.list_ids())}]>"

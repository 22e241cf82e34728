"""World substrate abstractions used by the deployment orchestrator.

The scheduler never touches the game world directly.  It talks to a small
set of collaborators, each an abstract base class here:

* :class:`AreaLoader` -- loads a transport template into a fresh area.
* :class:`ActorSpawner` -- spawns actors, tags them and finds placement points.
* :class:`Announcer` -- formats and broadcasts announcements.
* :class:`RoundState` -- round run level and elapsed round time.
* :class:`PlayerCounter` -- current number of connected players.

Round lifecycle notifications arrive as domain events on the
:class:`~response_teams.infrastructure.event_bus.EventBus`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import timedelta

from response_teams.domain.values import (
    AreaHandle,
    PlacementPoint,
    RoleDescriptor,
    SpawnedActor,
)


class AreaLoader(ABC):
    """Provisions transport/arrival areas."""

    @abstractmethod
    def load_area(self, template: str) -> AreaHandle:
        """Load *template* into a new area and return its handle.

        Raises
        ------
        ProvisionError
            If the template cannot be loaded.
        """
        ...


class ActorSpawner(ABC):
    """Instantiates actors from named templates."""

    @abstractmethod
    def spawn(self, template: str, point: PlacementPoint) -> SpawnedActor:
        """Spawn *template* at *point*."""
        ...

    @abstractmethod
    def ensure_marker(self, actor_id: str) -> None:
        """Tag *actor_id* as a deployed response team unit (idempotent)."""
        ...

    @abstractmethod
    def attach_role(self, actor_id: str, role: RoleDescriptor) -> None:
        """Set the selectable role carried by *actor_id*."""
        ...

    @abstractmethod
    def find_placement_points(self, area: AreaHandle, marker: str) -> list[PlacementPoint]:
        """Placement points inside *area* tagged with *marker*."""
        ...


class Announcer(ABC):
    """Broadcasts localized announcements."""

    @abstractmethod
    def announce(
        self,
        body_key: str,
        title_key: str,
        sound: str | None = None,
        color: str | None = None,
    ) -> None:
        ...


class RoundState(ABC):
    """Read-only view of the current round."""

    @abstractmethod
    def is_round_active(self) -> bool:
        ...

    @abstractmethod
    def round_elapsed(self) -> timedelta:
        ...


class PlayerCounter(ABC):
    @abstractmethod
    def player_count(self) -> int:
        ...

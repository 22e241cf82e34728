"""In-memory world substrate.

``SandboxWorld`` implements every collaborator in
:mod:`response_teams.world.base` on plain Python containers.  It backs the
``response-teams simulate`` command and the test suite, and doubles as a
reference for wiring the scheduler into a real engine.

Transport templates are registered up front with their marked placement
points; actor templates may declare a direct role or a deferred (nested)
role.  Loading an unknown transport raises ``ProvisionError``.
"""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass, field
from datetime import timedelta

from response_teams.domain.enums import RunLevel
from response_teams.domain.events import RoundEnded, RoundRestarted, RoundStarted
from response_teams.domain.exceptions import ProvisionError
from response_teams.domain.values import (
    AreaHandle,
    PlacementPoint,
    RoleDescriptor,
    SpawnedActor,
)
from response_teams.infrastructure.event_bus import EventBus
from response_teams.world.base import (
    ActorSpawner,
    Announcer,
    AreaLoader,
    PlayerCounter,
    RoundState,
)

logger = logging.getLogger(__name__)


@dataclass
class ActorState:
    """Mutable bookkeeping for one spawned sandbox actor."""

    actor_id: str
    template: str
    point: PlacementPoint
    marked: bool = False
    role: RoleDescriptor | None = None


@dataclass
class SentAnnouncement:
    body_key: str
    title_key: str
    sound: str | None = None
    color: str | None = None


@dataclass
class _Transport:
    # marker -> offsets relative to the area anchor
    markers: dict[str, list[tuple[float, float]]] = field(default_factory=dict)


class SandboxWorld(AreaLoader, ActorSpawner, Announcer, RoundState, PlayerCounter):
    """A self-contained world for simulations and tests.

    Parameters
    ----------
    player_count:
        Initial number of connected players.
    event_bus:
        Bus that receives round lifecycle events.  A private bus is
        created when omitted.

    Example
    -------
    ::

        world = SandboxWorld(player_count=23)
        world.add_transport("/Maps/ert.yml", {"SpawnPointERT": [(0, 1), (2, 1)]})
        world.add_actor_template("ERTLeader", role=RoleDescriptor("ERT Leader"))
        world.start_round()
        world.advance(minutes=12)
    """

    def __init__(self, player_count: int = 0, event_bus: EventBus | None = None) -> None:
        self._event_bus = event_bus or EventBus()
        self._players = player_count
        self._run_level = RunLevel.PRE_ROUND
        self._round_id = 0
        self._elapsed = timedelta(0)
        self._transports: dict[str, _Transport] = {}
        self._roles: dict[str, RoleDescriptor] = {}
        self._deferred_roles: dict[str, RoleDescriptor] = {}
        self._areas: dict[str, AreaHandle] = {}
        self._area_ids = itertools.count(1)
        self._actor_ids = itertools.count(1)
        self.actors: dict[str, ActorState] = {}
        self.announcements: list[SentAnnouncement] = []

    # -- setup --------------------------------------------------------------

    @property
    def event_bus(self) -> EventBus:
        return self._event_bus

    def add_transport(
        self,
        template: str,
        markers: dict[str, list[tuple[float, float]]] | None = None,
    ) -> None:
        """Make *template* loadable, with optional marked placement offsets."""
        self._transports[template] = _Transport(markers=dict(markers or {}))

    def add_actor_template(
        self,
        template: str,
        role: RoleDescriptor | None = None,
        deferred_role: RoleDescriptor | None = None,
    ) -> None:
        """Declare the role (direct or nested) that *template* carries."""
        if role is not None:
            self._roles[template] = role
        if deferred_role is not None:
            self._deferred_roles[template] = deferred_role

    def set_player_count(self, count: int) -> None:
        self._players = max(0, count)

    # -- round lifecycle ----------------------------------------------------

    def start_round(self) -> None:
        self._round_id += 1
        self._run_level = RunLevel.IN_ROUND
        self._elapsed = timedelta(0)
        self._event_bus.publish(RoundStarted(source_id="sandbox", round_id=self._round_id))

    def end_round(self) -> None:
        self._run_level = RunLevel.POST_ROUND
        self._event_bus.publish(RoundEnded(source_id="sandbox", round_id=self._round_id))

    def restart_round(self) -> None:
        """Tear the world down and announce the restart."""
        self._run_level = RunLevel.PRE_ROUND
        self._elapsed = timedelta(0)
        self._areas.clear()
        self.actors.clear()
        self.announcements.clear()
        self._event_bus.publish(RoundRestarted(source_id="sandbox", round_id=self._round_id))

    def advance(self, minutes: float = 0.0, seconds: float = 0.0) -> timedelta:
        """Move the round clock forward and return the new elapsed time."""
        self._elapsed += timedelta(minutes=minutes, seconds=seconds)
        return self._elapsed

    @property
    def run_level(self) -> RunLevel:
        return self._run_level

    # -- RoundState / PlayerCounter ------------------------------------------

    def is_round_active(self) -> bool:
        return self._run_level is RunLevel.IN_ROUND

    def round_elapsed(self) -> timedelta:
        return self._elapsed

    def player_count(self) -> int:
        return self._players

    # -- AreaLoader ---------------------------------------------------------

    def load_area(self, template: str) -> AreaHandle:
        if template not in self._transports:
            raise ProvisionError(f"Unknown transport template {template!r}", template=template)
        area_id = f"area-{next(self._area_ids)}"
        area = AreaHandle(area_id=area_id, template=template, anchor=PlacementPoint(area_id))
        self._areas[area_id] = area
        logger.debug("Loaded %s into %s", template, area_id)
        return area

    # -- ActorSpawner -------------------------------------------------------

    def find_placement_points(self, area: AreaHandle, marker: str) -> list[PlacementPoint]:
        transport = self._transports.get(area.template)
        if transport is None:
            return []
        return [
            PlacementPoint(area.area_id, area.anchor.x + dx, area.anchor.y + dy)
            for dx, dy in transport.markers.get(marker, [])
        ]

    def spawn(self, template: str, point: PlacementPoint) -> SpawnedActor:
        actor_id = f"actor-{next(self._actor_ids)}"
        role = self._roles.get(template)
        self.actors[actor_id] = ActorState(actor_id, template, point, role=role)
        return SpawnedActor(
            actor_id=actor_id,
            template=template,
            point=point,
            role=role,
            deferred_role=self._deferred_roles.get(template),
        )

    def ensure_marker(self, actor_id: str) -> None:
        self.actors[actor_id].marked = True

    def attach_role(self, actor_id: str, role: RoleDescriptor) -> None:
        self.actors[actor_id].role = role

    # -- Announcer ----------------------------------------------------------

    def announce(
        self,
        body_key: str,
        title_key: str,
        sound: str | None = None,
        color: str | None = None,
    ) -> None:
        self.announcements.append(SentAnnouncement(body_key, title_key, sound, color))

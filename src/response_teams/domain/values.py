"""Value objects for the response team scheduler.

All types here are frozen dataclasses, immutable and compared by value.
They describe static team configuration, the handles returned by the world
substrate, and the records a deployment leaves behind.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import timedelta

from .enums import DeploymentFailure
from .exceptions import TeamDefinitionError

# ---------------------------------------------------------------------------
# SpawnEntry
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SpawnEntry:
    """One weighted line of a roster.

    ``probability`` is the chance (or, inside an or-group, the relative
    weight) of the entry being drawn.  A drawn entry yields ``amount``
    copies of ``template``, or a uniform count in ``[amount, max_amount]``
    when ``max_amount`` is larger.
    """

    template: str
    probability: float = 1.0
    amount: int = 1
    max_amount: int = 1
    group: str | None = None

    def issues(self) -> list[str]:
        """Return human-readable problems with this entry (empty when valid)."""
        problems: list[str] = []
        if not self.template:
            problems.append("template must not be empty")
        if self.probability < 0.0:
            problems.append(f"probability must be >= 0, got {self.probability}")
        if self.amount < 0:
            problems.append(f"amount must be >= 0, got {self.amount}")
        if self.max_amount < 0:
            problems.append(f"max_amount must be >= 0, got {self.max_amount}")
        return problems


# ---------------------------------------------------------------------------
# RaffleConfig / RoleDescriptor
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RaffleConfig:
    """Policy for how eligible participants compete for a role slot.

    Durations are in seconds.  ``settings`` names a shared preset when the
    world substrate keeps one; the explicit durations are used otherwise.
    """

    initial_duration: int = 30
    join_extends_duration_by: int = 10
    max_duration: int = 90
    settings: str | None = None


@dataclass(frozen=True)
class RoleDescriptor:
    """A selectable role carried by a spawned actor."""

    name: str
    description: str = ""
    raffle: RaffleConfig | None = None


def apply_raffle_config(
    role: RoleDescriptor,
    config: RaffleConfig | None,
    *,
    overwrite: bool = False,
) -> RoleDescriptor:
    """Return *role* carrying *config* as its raffle policy.

    Without *overwrite* a role that already has its own raffle policy is
    returned unchanged.
    """
    if role.raffle is not None and not overwrite:
        return role
    return replace(role, raffle=config)


# ---------------------------------------------------------------------------
# Announcement / TeamDefinition
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Announcement:
    """Presentation of the arrival announcement.

    ``title_key`` and ``body_key`` are localization keys; when either is
    missing the deployment is silent.
    """

    title_key: str | None = None
    body_key: str | None = None
    sound: str | None = None
    color: str | None = None

    @property
    def is_silent(self) -> bool:
        return self.title_key is None or self.body_key is None


@dataclass(frozen=True)
class TeamDefinition:
    """Static description of a deployable response team."""

    team_id: str
    label: str = ""
    transport_template: str = ""
    placement_marker: str = ""
    guaranteed_roster: tuple[SpawnEntry, ...] = ()
    optional_roster: tuple[SpawnEntry, ...] = ()
    spawn_per_players: int = 10
    max_roles_amount: int = 999
    raffle: RaffleConfig | None = None
    announcement: Announcement = field(default_factory=Announcement)

    @property
    def event_label(self) -> str:
        """Label recorded in the deployment history."""
        return self.label or self.team_id

    def validate(self) -> None:
        """Raise ``TeamDefinitionError`` listing every problem found."""
        issues: list[str] = []
        if not self.team_id:
            issues.append("team_id must not be empty")
        if self.spawn_per_players <= 0:
            issues.append(
                f"spawn_per_players must be > 0, got {self.spawn_per_players}"
            )
        if self.max_roles_amount < 0:
            issues.append(
                f"max_roles_amount must be >= 0, got {self.max_roles_amount}"
            )
        for roster_name, roster in (
            ("guaranteed_roster", self.guaranteed_roster),
            ("optional_roster", self.optional_roster),
        ):
            for index, entry in enumerate(roster):
                issues.extend(
                    f"{roster_name}[{index}]: {problem}" for problem in entry.issues()
                )
        if issues:
            raise TeamDefinitionError(
                f"Team {self.team_id!r} is invalid: {'; '.join(issues)}",
                team_id=self.team_id,
                issues=issues,
            )


# ---------------------------------------------------------------------------
# World handles
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PlacementPoint:
    """A location inside a provisioned area that can receive an actor."""

    area_id: str
    x: float = 0.0
    y: float = 0.0


@dataclass(frozen=True)
class AreaHandle:
    """A freshly provisioned transport area."""

    area_id: str
    template: str
    anchor: PlacementPoint


@dataclass(frozen=True)
class SpawnedActor:
    """Result of spawning one roster template.

    ``deferred_role`` is set when the actor is itself a deferred role
    spawner whose nested template defines a selectable role.
    """

    actor_id: str
    template: str
    point: PlacementPoint
    role: RoleDescriptor | None = None
    deferred_role: RoleDescriptor | None = None


# ---------------------------------------------------------------------------
# DeploymentRecord / DeploymentResult
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DeploymentRecord:
    """One successful deployment, as kept in the round history."""

    event_label: str
    round_time: timedelta
    source: str


@dataclass(frozen=True)
class DeploymentResult:
    """Outcome of a single ``deploy`` call.

    Truthiness mirrors ``success`` so the result can be used as a flag.
    """

    success: bool
    team_id: str
    reason: DeploymentFailure | None = None
    spawned: tuple[SpawnedActor, ...] = ()

    def __bool__(self) -> bool:
        return self.success

    @classmethod
    def failed(cls, team_id: str, reason: DeploymentFailure) -> DeploymentResult:
        return cls(success=False, team_id=team_id, reason=reason)

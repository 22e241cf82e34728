"""Deployment orchestrator: the public entry point of the scheduler.

Sequences one deployment attempt::

    gate -> team lookup -> round check -> cooldown check -> timestamp
         -> provision area -> placement points -> guaranteed roster
         -> optional roster -> announcement -> history -> release

The cooldown is consumed as soon as the checks pass, before any side
effect, so a botched deployment (for example a missing transport template)
still counts against it.  No failure escapes :meth:`DeploymentOrchestrator.deploy`;
each one becomes a ``DeploymentResult`` with a ``DeploymentFailure`` reason,
a log record and a ``DeploymentRejected`` event.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import timedelta

import numpy as np

from response_teams.domain.enums import DeploymentFailure
from response_teams.domain.events import (
    DeploymentRejected,
    RoundEnded,
    RoundRestarted,
    TeamDeployed,
)
from response_teams.domain.exceptions import ProvisionError
from response_teams.domain.values import (
    AreaHandle,
    DeploymentRecord,
    DeploymentResult,
    PlacementPoint,
    SpawnedActor,
    TeamDefinition,
    apply_raffle_config,
)
from response_teams.infrastructure.config import ConfigStore, SchedulerConfig
from response_teams.infrastructure.event_bus import EventBus
from response_teams.infrastructure.registry import TeamRegistry
from response_teams.services.gate import DeploymentGate
from response_teams.services.history import DeploymentHistory
from response_teams.services.roster import RosterComposer
from response_teams.world.base import (
    ActorSpawner,
    Announcer,
    AreaLoader,
    PlayerCounter,
    RoundState,
)

logger = logging.getLogger(__name__)


class DeploymentOrchestrator:
    """Schedules response team deployments for one round context.

    Parameters
    ----------
    teams:
        Registry of deployable team definitions.
    area_loader, spawner, announcer, round_state, players:
        World collaborators, see :mod:`response_teams.world.base`.
    config:
        Live configuration; read on every call.  Defaults to a
        ``ConfigStore`` holding ``SchedulerConfig()``.
    event_bus:
        Bus for ``TeamDeployed`` / ``DeploymentRejected`` events.  A private
        bus is created when omitted.
    rng:
        Random generator for roster draws and placement.  Defaults to
        ``np.random.default_rng(config.seed)``.

    Example
    -------
    ::

        orchestrator = DeploymentOrchestrator(teams, world, world, world, world, world)
        orchestrator.bind(bus)
        result = orchestrator.deploy("ert", source="admin:Alice")
        if not result:
            print(result.reason)
    """

    def __init__(
        self,
        teams: TeamRegistry,
        area_loader: AreaLoader,
        spawner: ActorSpawner,
        announcer: Announcer,
        round_state: RoundState,
        players: PlayerCounter,
        config: ConfigStore | None = None,
        event_bus: EventBus | None = None,
        rng: np.random.Generator | None = None,
    ) -> None:
        self._teams = teams
        self._area_loader = area_loader
        self._spawner = spawner
        self._announcer = announcer
        self._round = round_state
        self._players = players
        self._config = config or ConfigStore()
        self._event_bus = event_bus or EventBus()
        self._rng = rng if rng is not None else np.random.default_rng(self._config.get().seed)
        self._gate = DeploymentGate(self._config.cooldown)
        self._history = DeploymentHistory()

    # -- properties ---------------------------------------------------------

    @property
    def gate(self) -> DeploymentGate:
        return self._gate

    @property
    def event_bus(self) -> EventBus:
        return self._event_bus

    @property
    def history(self) -> tuple[DeploymentRecord, ...]:
        """Deployments since the last round restart, oldest first."""
        return self._history.records

    @property
    def last_deploy_time(self) -> timedelta:
        return self._gate.last_deploy_time

    # -- queries ------------------------------------------------------------

    def cooldown_remaining(self) -> timedelta:
        """Cooldown left at the current round time."""
        return self._gate.cooldown_remaining(self._round.round_elapsed())

    def optional_quota(
        self,
        team_id: str,
        player_count: int | None = None,
        override_extra: int | None = None,
    ) -> int:
        """Optional-roster size *team_id* would get right now.

        Uses the live player count when *player_count* is omitted.  Raises
        ``KeyError`` for an unknown team.
        """
        team = self._teams.get(team_id)
        if player_count is None:
            player_count = self._players.player_count()
        return self._composer().compute_optional_quota(team, player_count, override_extra)

    def round_end_report(self) -> list[str]:
        return self._history.report_lines()

    # -- lifecycle ----------------------------------------------------------

    def bind(self, bus: EventBus) -> None:
        """Subscribe to round lifecycle events on *bus*."""
        bus.subscribe(RoundRestarted, self.on_round_restart)
        bus.subscribe(RoundEnded, self.on_round_end)

    def on_round_restart(self, event: RoundRestarted) -> None:
        self.reset()

    def on_round_end(self, event: RoundEnded) -> None:
        for line in self.round_end_report():
            logger.info("Round %d: %s", event.round_id, line)

    def reset(self) -> None:
        """Clear history and cooldown and force the gate open."""
        self._history.clear()
        self._gate.reset()
        logger.debug("Response team scheduler reset")

    # -- deployment ---------------------------------------------------------

    def deploy(
        self,
        team_id: str,
        source: str = "Unknown",
        override_extra: int | None = None,
        force: bool = False,
    ) -> DeploymentResult:
        """Deploy the team *team_id*.

        Parameters
        ----------
        team_id:
            Key of the team in the registry.
        source:
            Free-form description of who asked, e.g. ``"admin:Alice"``.
        override_extra:
            Explicit optional-roster size; honoured when it lies within
            ``[0, override_ceiling]``.
        force:
            Ignore the cooldown.  The cooldown is still restarted.

        Returns
        -------
        DeploymentResult
            Truthy on success; otherwise ``reason`` says why it failed.
        """
        if not self._gate.try_acquire():
            logger.warning("Response team deployment is busy; %s from %s rejected", team_id, source)
            return self._reject(team_id, source, DeploymentFailure.BUSY)
        try:
            return self._deploy_locked(team_id, source, override_extra, force)
        finally:
            self._gate.release()

    def _deploy_locked(
        self,
        team_id: str,
        source: str,
        override_extra: int | None,
        force: bool,
    ) -> DeploymentResult:
        team = self._teams.get_or_none(team_id)
        if team is None:
            logger.error("Unknown response team %r", team_id)
            return self._reject(team_id, source, DeploymentFailure.UNKNOWN_TEAM)

        if not self._round.is_round_active():
            logger.warning("Can't deploy %s while not in the round", team_id)
            return self._reject(team_id, source, DeploymentFailure.ROUND_NOT_ACTIVE)

        config = self._config.get()
        now = self._round.round_elapsed()
        if not force and not config.allow_cooldown_bypass:
            remaining = self._gate.cooldown_remaining(now)
            if remaining > timedelta(0):
                logger.info(
                    "Tried to deploy %s while on cooldown (%s remaining)", team_id, remaining
                )
                return self._reject(team_id, source, DeploymentFailure.ON_COOLDOWN)

        self._gate.record_success(now)

        try:
            area = self._area_loader.load_area(team.transport_template)
        except ProvisionError as exc:
            logger.error("Failed to load transport %r for %s: %s", team.transport_template, team_id, exc)
            return self._reject(team_id, source, DeploymentFailure.PROVISION_FAILED)
        except Exception:
            logger.exception("Area loader crashed on transport %r for %s", team.transport_template, team_id)
            return self._reject(team_id, source, DeploymentFailure.PROVISION_FAILED)

        composer = self._composer(config)
        try:
            spawned = self._spawn_roster(team, area, composer, override_extra)
            self._dispatch_announcement(team)
        except Exception:
            logger.exception("Deployment of %s failed after provisioning", team_id)
            return self._reject(team_id, source, DeploymentFailure.SPAWN_FAILED)

        self._history.append(team.event_label, now, source)
        logger.info("Successfully deployed %s response team. Source: %s", team_id, source)
        self._event_bus.publish(TeamDeployed(
            source_id="orchestrator",
            team_id=team_id,
            event_label=team.event_label,
            caller=source,
            round_time=now,
            spawned_count=len(spawned),
        ))
        return DeploymentResult(success=True, team_id=team_id, spawned=tuple(spawned))

    # -- internal helpers ---------------------------------------------------

    def _composer(self, config: SchedulerConfig | None = None) -> RosterComposer:
        config = config or self._config.get()
        return RosterComposer(
            rng=self._rng,
            override_ceiling=config.override_ceiling,
        )

    def _spawn_roster(
        self,
        team: TeamDefinition,
        area: AreaHandle,
        composer: RosterComposer,
        override_extra: int | None,
    ) -> list[SpawnedActor]:
        points = self._spawner.find_placement_points(area, team.placement_marker)
        if not points:
            logger.warning(
                "Area %s has no %r placement points; using its anchor",
                area.area_id, team.placement_marker,
            )
            points = [area.anchor]

        spawned: list[SpawnedActor] = []
        for template in composer.compose_guaranteed(team):
            actor = self._spawn_member(team, template, composer.pick(points))
            logger.info("Spawned %s (%s) as guaranteed %s member", actor.actor_id, template, team.team_id)
            spawned.append(actor)

        quota = composer.compute_optional_quota(team, self._players.player_count(), override_extra)
        for template in composer.compose_optional(team, quota):
            actor = self._spawn_member(team, template, composer.pick(points))
            logger.info("Spawned %s (%s) as optional %s member", actor.actor_id, template, team.team_id)
            spawned.append(actor)
        return spawned

    def _spawn_member(
        self,
        team: TeamDefinition,
        template: str,
        point: PlacementPoint,
    ) -> SpawnedActor:
        actor = self._spawner.spawn(template, point)
        self._spawner.ensure_marker(actor.actor_id)

        role = actor.role
        if actor.deferred_role is not None:
            # A deferred spawner exposes its nested role on itself.
            role = apply_raffle_config(actor.deferred_role, team.raffle, overwrite=True)
            self._spawner.attach_role(actor.actor_id, role)
        if role is not None and role.raffle is None and team.raffle is not None:
            role = apply_raffle_config(role, team.raffle)
            self._spawner.attach_role(actor.actor_id, role)
        return replace(actor, role=role)

    def _dispatch_announcement(self, team: TeamDefinition) -> None:
        announcement = team.announcement
        if announcement.is_silent:
            return
        self._announcer.announce(
            announcement.body_key,
            announcement.title_key,
            sound=announcement.sound,
            color=announcement.color,
        )

    def _reject(
        self,
        team_id: str,
        source: str,
        reason: DeploymentFailure,
    ) -> DeploymentResult:
        self._event_bus.publish(DeploymentRejected(
            source_id="orchestrator",
            team_id=team_id,
            caller=source,
            reason=reason,
        ))
        return DeploymentResult.failed(team_id, reason)

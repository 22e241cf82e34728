"""Tests for DeploymentOrchestrator."""

from __future__ import annotations

import logging
import threading
from datetime import timedelta

import numpy as np
import pytest

from response_teams.domain.enums import DeploymentFailure
from response_teams.domain.events import DeploymentRejected, DomainEvent, TeamDeployed
from response_teams.domain.values import (
    AreaHandle,
    PlacementPoint,
    RaffleConfig,
    RoleDescriptor,
    SpawnedActor,
    TeamDefinition,
)
from response_teams.infrastructure.config import ConfigStore
from response_teams.infrastructure.event_bus import EventBus
from response_teams.infrastructure.registry import TeamRegistry
from response_teams.services.orchestrator import DeploymentOrchestrator
from response_teams.world.sandbox import SandboxWorld


# ===================================================================== #
#  Happy path                                                            #
# ===================================================================== #


class TestSuccessfulDeployment:
    def test_spawns_guaranteed_and_optional(
        self, orchestrator: DeploymentOrchestrator, world: SandboxWorld
    ) -> None:
        result = orchestrator.deploy("ert", source="admin:Alice")

        assert result
        assert result.reason is None
        templates = [actor.template for actor in result.spawned]
        # 1 leader plus (23 + 5) // 5 == 5 optional members
        assert templates[0] == "ERTLeader"
        assert len(templates) == 6
        assert set(templates[1:]) <= {"ERTEngineer", "ERTMedic"}
        assert len(world.actors) == 6

    def test_every_actor_is_marked_and_placed_on_markers(
        self, orchestrator: DeploymentOrchestrator, world: SandboxWorld
    ) -> None:
        result = orchestrator.deploy("ert")
        area_id = result.spawned[0].point.area_id
        marked_points = {PlacementPoint(area_id, x, 0.0) for x in (0.0, 1.0, 2.0)}
        assert all(state.marked for state in world.actors.values())
        assert {actor.point for actor in result.spawned} <= marked_points

    def test_announcement_dispatched(
        self, orchestrator: DeploymentOrchestrator, world: SandboxWorld
    ) -> None:
        orchestrator.deploy("ert")
        assert len(world.announcements) == 1
        sent = world.announcements[0]
        assert sent.title_key == "ert-announcement-title"
        assert sent.body_key == "ert-announcement-body"
        assert sent.sound == "/Audio/Announcements/ert.ogg"
        assert sent.color == "#1d8bad"

    def test_silent_team_does_not_announce(
        self, orchestrator: DeploymentOrchestrator, world: SandboxWorld
    ) -> None:
        assert orchestrator.deploy("silent")
        assert world.announcements == []

    def test_history_recorded(
        self, orchestrator: DeploymentOrchestrator, world: SandboxWorld
    ) -> None:
        orchestrator.deploy("ert", source="admin:Alice")
        assert len(orchestrator.history) == 1
        record = orchestrator.history[0]
        assert record.event_label == "Emergency Response Team"
        assert record.round_time == timedelta(minutes=30)
        assert record.source == "admin:Alice"
        assert orchestrator.last_deploy_time == timedelta(minutes=30)
        assert orchestrator.gate.locked is False

    def test_default_source(self, orchestrator: DeploymentOrchestrator) -> None:
        orchestrator.deploy("ert")
        assert orchestrator.history[0].source == "Unknown"

    def test_deployed_event_published(
        self, orchestrator: DeploymentOrchestrator, event_bus: EventBus
    ) -> None:
        received: list[DomainEvent] = []
        event_bus.subscribe(TeamDeployed, received.append)
        orchestrator.deploy("ert", source="system:auto")
        assert len(received) == 1
        assert received[0].team_id == "ert"
        assert received[0].caller == "system:auto"
        assert received[0].spawned_count == 6


# ===================================================================== #
#  Quota overrides / placement fallback                                  #
# ===================================================================== #


class TestRosterSizing:
    def test_override_in_range(self, orchestrator: DeploymentOrchestrator) -> None:
        result = orchestrator.deploy("ert", override_extra=12)
        assert len(result.spawned) == 1 + 12

    def test_override_out_of_range_falls_back(self, orchestrator: DeploymentOrchestrator) -> None:
        result = orchestrator.deploy("ert", override_extra=16)
        assert len(result.spawned) == 1 + 5

    def test_override_zero(self, orchestrator: DeploymentOrchestrator) -> None:
        result = orchestrator.deploy("ert", override_extra=0)
        assert [a.template for a in result.spawned] == ["ERTLeader"]

    def test_live_player_count(
        self, orchestrator: DeploymentOrchestrator, world: SandboxWorld
    ) -> None:
        world.set_player_count(60)
        assert orchestrator.optional_quota("ert") == 10
        assert orchestrator.optional_quota("ert", player_count=9) == 2
        assert len(orchestrator.deploy("ert").spawned) == 1 + 10

    def test_no_markers_uses_area_anchor(
        self, orchestrator: DeploymentOrchestrator, world: SandboxWorld
    ) -> None:
        result = orchestrator.deploy("silent")
        assert result
        assert len(result.spawned) == 2
        anchor = PlacementPoint(result.spawned[0].point.area_id)
        assert all(actor.point == anchor for actor in result.spawned)


# ===================================================================== #
#  Rejections                                                            #
# ===================================================================== #


class TestRejections:
    def test_unknown_team_leaves_state_alone(
        self, orchestrator: DeploymentOrchestrator, world: SandboxWorld
    ) -> None:
        result = orchestrator.deploy("deathsquad")
        assert not result
        assert result.reason is DeploymentFailure.UNKNOWN_TEAM
        assert orchestrator.last_deploy_time == timedelta(0)
        assert orchestrator.history == ()
        assert world.actors == {}

    def test_round_not_active(
        self, orchestrator: DeploymentOrchestrator, world: SandboxWorld
    ) -> None:
        world.end_round()
        result = orchestrator.deploy("ert")
        assert result.reason is DeploymentFailure.ROUND_NOT_ACTIVE
        assert orchestrator.last_deploy_time == timedelta(0)

    def test_busy_when_gate_held(self, orchestrator: DeploymentOrchestrator) -> None:
        assert orchestrator.gate.try_acquire()
        result = orchestrator.deploy("ert")
        assert result.reason is DeploymentFailure.BUSY
        assert orchestrator.history == ()
        orchestrator.gate.release()

    def test_rejected_event_published(
        self, orchestrator: DeploymentOrchestrator, event_bus: EventBus
    ) -> None:
        received: list[DomainEvent] = []
        event_bus.subscribe(DeploymentRejected, received.append)
        orchestrator.deploy("deathsquad", source="admin:Bob")
        assert len(received) == 1
        assert received[0].reason is DeploymentFailure.UNKNOWN_TEAM
        assert received[0].caller == "admin:Bob"

    def test_provision_failure_still_consumes_cooldown(
        self, teams: TeamRegistry, world: SandboxWorld, orchestrator: DeploymentOrchestrator
    ) -> None:
        teams.register(TeamDefinition(team_id="lost", transport_template="/Maps/missing.yml"))
        result = orchestrator.deploy("lost")
        assert result.reason is DeploymentFailure.PROVISION_FAILED
        assert orchestrator.last_deploy_time == timedelta(minutes=30)
        assert orchestrator.history == ()
        assert orchestrator.gate.locked is False

        world.advance(minutes=1)
        assert orchestrator.deploy("ert").reason is DeploymentFailure.ON_COOLDOWN

    def test_spawn_failure_releases_gate(
        self,
        teams: TeamRegistry,
        config_store: ConfigStore,
    ) -> None:
        class BrokenWorld(SandboxWorld):
            def spawn(self, template: str, point: PlacementPoint) -> SpawnedActor:
                raise RuntimeError("template exploded")

        broken = BrokenWorld(player_count=5)
        broken.add_transport("/Maps/Shuttles/ert.yml")
        broken.start_round()
        broken.advance(minutes=30)
        orch = DeploymentOrchestrator(teams, broken, broken, broken, broken, broken, config=config_store)

        result = orch.deploy("ert")
        assert result.reason is DeploymentFailure.SPAWN_FAILED
        assert orch.gate.locked is False
        assert orch.history == ()
        assert orch.last_deploy_time == timedelta(minutes=30)

    def test_loader_crash_is_provision_failure(
        self,
        teams: TeamRegistry,
        config_store: ConfigStore,
    ) -> None:
        class UnreadableWorld(SandboxWorld):
            def load_area(self, template: str) -> AreaHandle:
                raise OSError("map file unreadable")

        unreadable = UnreadableWorld(player_count=5)
        unreadable.start_round()
        unreadable.advance(minutes=30)
        orch = DeploymentOrchestrator(
            teams, unreadable, unreadable, unreadable, unreadable, unreadable, config=config_store
        )

        result = orch.deploy("ert")
        assert result.reason is DeploymentFailure.PROVISION_FAILED
        assert orch.gate.locked is False
        assert orch.history == ()
        assert orch.last_deploy_time == timedelta(minutes=30)


# ===================================================================== #
#  Cooldown                                                              #
# ===================================================================== #


class TestCooldown:
    def test_blocked_until_cooldown_elapses(
        self, orchestrator: DeploymentOrchestrator, world: SandboxWorld
    ) -> None:
        assert orchestrator.deploy("ert")  # T = 30 min, C = 10 min

        world.advance(minutes=9, seconds=59)
        result = orchestrator.deploy("ert")
        assert result.reason is DeploymentFailure.ON_COOLDOWN
        assert orchestrator.cooldown_remaining() == timedelta(seconds=1)

        world.advance(seconds=1)
        assert orchestrator.cooldown_remaining() == timedelta(0)
        assert orchestrator.deploy("ert")
        assert len(orchestrator.history) == 2

    def test_cooldown_applies_across_teams(
        self, orchestrator: DeploymentOrchestrator, world: SandboxWorld
    ) -> None:
        assert orchestrator.deploy("ert")
        world.advance(minutes=1)
        assert orchestrator.deploy("silent").reason is DeploymentFailure.ON_COOLDOWN

    def test_round_start_counts_as_last_deploy(
        self, teams: TeamRegistry, config_store: ConfigStore
    ) -> None:
        world = SandboxWorld(player_count=10)
        world.add_transport("/Maps/Shuttles/ert.yml")
        world.start_round()
        world.advance(minutes=3)
        orch = DeploymentOrchestrator(teams, world, world, world, world, world, config=config_store)
        assert orch.deploy("ert").reason is DeploymentFailure.ON_COOLDOWN

    def test_force_bypasses_and_restarts_cooldown(
        self, orchestrator: DeploymentOrchestrator, world: SandboxWorld
    ) -> None:
        assert orchestrator.deploy("ert")
        world.advance(minutes=2)
        assert orchestrator.deploy("ert", force=True)
        assert orchestrator.last_deploy_time == timedelta(minutes=32)
        world.advance(minutes=9)
        assert orchestrator.deploy("ert").reason is DeploymentFailure.ON_COOLDOWN

    def test_bypass_flag_skips_check(
        self,
        orchestrator: DeploymentOrchestrator,
        world: SandboxWorld,
        config_store: ConfigStore,
    ) -> None:
        assert orchestrator.deploy("ert")
        config_store.update(allow_cooldown_bypass=True)
        world.advance(minutes=1)
        assert orchestrator.deploy("ert")
        assert orchestrator.last_deploy_time == timedelta(minutes=31)

    def test_cooldown_change_applies_without_restart(
        self,
        orchestrator: DeploymentOrchestrator,
        world: SandboxWorld,
        config_store: ConfigStore,
    ) -> None:
        assert orchestrator.deploy("ert")
        world.advance(minutes=3)
        assert not orchestrator.deploy("ert")
        config_store.update(cooldown_minutes=2)
        assert orchestrator.deploy("ert")


# ===================================================================== #
#  Raffle propagation                                                    #
# ===================================================================== #


class TestRafflePropagation:
    def test_direct_role_without_raffle_gets_team_raffle(
        self,
        orchestrator: DeploymentOrchestrator,
        world: SandboxWorld,
        team_raffle: RaffleConfig,
    ) -> None:
        result = orchestrator.deploy("ert", override_extra=0)
        leader = result.spawned[0]
        assert leader.role == RoleDescriptor("ERT Leader", raffle=team_raffle)
        assert world.actors[leader.actor_id].role.raffle == team_raffle

    def test_direct_role_keeps_own_raffle(
        self, orchestrator: DeploymentOrchestrator, world: SandboxWorld
    ) -> None:
        own = RaffleConfig(initial_duration=5, max_duration=5)
        world.add_actor_template("ERTLeader", role=RoleDescriptor("ERT Leader", raffle=own))
        leader = orchestrator.deploy("ert", override_extra=0).spawned[0]
        assert leader.role.raffle == own

    def test_deferred_role_always_takes_team_raffle(
        self,
        orchestrator: DeploymentOrchestrator,
        world: SandboxWorld,
        team_raffle: RaffleConfig,
    ) -> None:
        nested = RoleDescriptor("ERT Medic", raffle=RaffleConfig(initial_duration=1))
        world.add_actor_template("ERTMedic", deferred_role=nested)
        world.add_actor_template("ERTEngineer", deferred_role=RoleDescriptor("ERT Engineer"))

        result = orchestrator.deploy("ert")
        for actor in result.spawned[1:]:
            assert actor.role is not None
            assert actor.role.raffle == team_raffle
            assert world.actors[actor.actor_id].role == actor.role

    def test_actor_without_roles_untouched(
        self, orchestrator: DeploymentOrchestrator, world: SandboxWorld
    ) -> None:
        result = orchestrator.deploy("silent")
        assert all(actor.role is None for actor in result.spawned)


# ===================================================================== #
#  Lifecycle and concurrency                                             #
# ===================================================================== #


class TestLifecycle:
    def test_restart_clears_history_and_cooldown(
        self, orchestrator: DeploymentOrchestrator, world: SandboxWorld
    ) -> None:
        assert orchestrator.deploy("ert")
        world.restart_round()
        assert orchestrator.history == ()
        assert orchestrator.last_deploy_time == timedelta(0)

    def test_restart_unlocks_stuck_gate(
        self, orchestrator: DeploymentOrchestrator, world: SandboxWorld
    ) -> None:
        orchestrator.gate.try_acquire()
        world.restart_round()
        assert orchestrator.gate.locked is False

        world.start_round()
        world.advance(minutes=15)
        assert orchestrator.deploy("ert")

    def test_round_end_report_logged(
        self,
        orchestrator: DeploymentOrchestrator,
        world: SandboxWorld,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        orchestrator.deploy("ert", source="admin:Alice")
        with caplog.at_level(logging.INFO, logger="response_teams.services.orchestrator"):
            world.end_round()
        assert "Emergency Response Team was called at 00:30:00 by admin:Alice" in caplog.text
        assert orchestrator.round_end_report() == [
            "Emergency Response Team was called at 00:30:00 by admin:Alice"
        ]

    def test_concurrent_attempt_sees_busy(
        self, teams: TeamRegistry, config_store: ConfigStore
    ) -> None:
        class SlowWorld(SandboxWorld):
            def __init__(self) -> None:
                super().__init__(player_count=4)
                self.entered = threading.Event()
                self.proceed = threading.Event()

            def spawn(self, template: str, point: PlacementPoint) -> SpawnedActor:
                self.entered.set()
                self.proceed.wait(timeout=5)
                return super().spawn(template, point)

        world = SlowWorld()
        world.add_transport("/Maps/Shuttles/ert.yml")
        world.start_round()
        world.advance(minutes=30)
        orch = DeploymentOrchestrator(
            teams, world, world, world, world, world,
            config=config_store,
            rng=np.random.default_rng(0),
        )

        results = []
        worker = threading.Thread(target=lambda: results.append(orch.deploy("ert", "first")))
        worker.start()
        assert world.entered.wait(timeout=5)

        second = orch.deploy("ert", "second")
        world.proceed.set()
        worker.join(timeout=5)

        assert second.reason is DeploymentFailure.BUSY
        assert len(results) == 1 and results[0].success
        assert [r.source for r in orch.history] == ["first"]

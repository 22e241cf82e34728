"""Shared fixtures for the response team test suite."""

from __future__ import annotations

import numpy as np
import pytest

from response_teams.domain.values import (
    Announcement,
    RaffleConfig,
    RoleDescriptor,
    SpawnEntry,
    TeamDefinition,
)
from response_teams.infrastructure.config import ConfigStore, SchedulerConfig
from response_teams.infrastructure.event_bus import EventBus
from response_teams.infrastructure.registry import TeamRegistry
from response_teams.services.orchestrator import DeploymentOrchestrator
from response_teams.world.sandbox import SandboxWorld

ERT_TRANSPORT = "/Maps/Shuttles/ert.yml"
ERT_MARKER = "SpawnPointERT"

# ---------------------------------------------------------------------------
# Value-object fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def team_raffle() -> RaffleConfig:
    return RaffleConfig(initial_duration=20, join_extends_duration_by=5, max_duration=60)


@pytest.fixture
def ert_team(team_raffle: RaffleConfig) -> TeamDefinition:
    """One leader plus engineers/medics, 1 optional per 5 players, max 10."""
    return TeamDefinition(
        team_id="ert",
        label="Emergency Response Team",
        transport_template=ERT_TRANSPORT,
        placement_marker=ERT_MARKER,
        guaranteed_roster=(SpawnEntry("ERTLeader"),),
        optional_roster=(
            SpawnEntry("ERTEngineer", probability=0.5, group="support"),
            SpawnEntry("ERTMedic", probability=0.5, group="support"),
        ),
        spawn_per_players=5,
        max_roles_amount=10,
        raffle=team_raffle,
        announcement=Announcement(
            title_key="ert-announcement-title",
            body_key="ert-announcement-body",
            sound="/Audio/Announcements/ert.ogg",
            color="#1d8bad",
        ),
    )


@pytest.fixture
def silent_team() -> TeamDefinition:
    """A team without announcement keys whose transport has no markers."""
    return TeamDefinition(
        team_id="silent",
        label="Silent Team",
        transport_template="/Maps/Shuttles/silent.yml",
        placement_marker="SpawnPointSilent",
        guaranteed_roster=(SpawnEntry("Operative", amount=2, max_amount=2),),
        spawn_per_players=10,
        max_roles_amount=0,
    )


@pytest.fixture
def teams(ert_team: TeamDefinition, silent_team: TeamDefinition) -> TeamRegistry:
    return TeamRegistry([ert_team, silent_team])


# ---------------------------------------------------------------------------
# World / service fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def event_bus() -> EventBus:
    return EventBus()


@pytest.fixture
def world(event_bus: EventBus) -> SandboxWorld:
    """23 players, round running for 30 minutes."""
    world = SandboxWorld(player_count=23, event_bus=event_bus)
    world.add_transport(ERT_TRANSPORT, {ERT_MARKER: [(0.0, 0.0), (1.0, 0.0), (2.0, 0.0)]})
    world.add_transport("/Maps/Shuttles/silent.yml")
    world.add_actor_template("ERTLeader", role=RoleDescriptor("ERT Leader"))
    world.start_round()
    world.advance(minutes=30)
    return world


@pytest.fixture
def config_store() -> ConfigStore:
    return ConfigStore(SchedulerConfig(cooldown_minutes=10, seed=7))


@pytest.fixture
def orchestrator(
    teams: TeamRegistry,
    world: SandboxWorld,
    config_store: ConfigStore,
    event_bus: EventBus,
) -> DeploymentOrchestrator:
    orch = DeploymentOrchestrator(
        teams, world, world, world, world, world,
        config=config_store,
        event_bus=event_bus,
        rng=np.random.default_rng(7),
    )
    orch.bind(event_bus)
    return orch

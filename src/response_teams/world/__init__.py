"""World substrate ports and the in-memory sandbox implementation."""

from response_teams.world.base import (
    ActorSpawner,
    Announcer,
    AreaLoader,
    PlayerCounter,
    RoundState,
)
from response_teams.world.sandbox import SandboxWorld

__all__ = [
    "AreaLoader",
    "ActorSpawner",
    "Announcer",
    "RoundState",
    "PlayerCounter",
    "SandboxWorld",
]

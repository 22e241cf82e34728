"""Domain layer for the response team scheduler.

Re-exports all public domain types so that consumers can write::

    from response_teams.domain import TeamDefinition, SpawnEntry
"""

from .enums import DeploymentFailure, RunLevel
from .events import (
    DeploymentRejected,
    DomainEvent,
    RoundEnded,
    RoundRestarted,
    RoundStarted,
    TeamDeployed,
)
from .exceptions import (
    ConfigError,
    ProvisionError,
    ResponseTeamError,
    TeamDefinitionError,
)
from .values import (
    Announcement,
    AreaHandle,
    DeploymentRecord,
    DeploymentResult,
    PlacementPoint,
    RaffleConfig,
    RoleDescriptor,
    SpawnedActor,
    SpawnEntry,
    TeamDefinition,
    apply_raffle_config,
)

__all__ = [
    # Enums
    "DeploymentFailure",
    "RunLevel",
    # Events
    "DomainEvent",
    "RoundStarted",
    "RoundEnded",
    "RoundRestarted",
    "TeamDeployed",
    "DeploymentRejected",
    # Exceptions
    "ResponseTeamError",
    "TeamDefinitionError",
    "ProvisionError",
    "ConfigError",
    # Values
    "SpawnEntry",
    "RaffleConfig",
    "RoleDescriptor",
    "apply_raffle_config",
    "Announcement",
    "TeamDefinition",
    "PlacementPoint",
    "AreaHandle",
    "SpawnedActor",
    "DeploymentRecord",
    "DeploymentResult",
]

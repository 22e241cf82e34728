"""Infrastructure layer for the response team scheduler.

Re-exports the public API surface for convenience::

    from response_teams.infrastructure import (
        EventBus, TeamRegistry, ConfigStore, SchedulerConfig,
    )
"""

from response_teams.infrastructure.config import (
    ConfigStore,
    SchedulerConfig,
    load_config_from_json,
)
from response_teams.infrastructure.event_bus import EventBus
from response_teams.infrastructure.registry import TeamRegistry
from response_teams.infrastructure.serialization import (
    history_to_json,
    load_teams_file,
    load_teams_from_json,
    load_teams_from_yaml,
    team_from_dict,
    team_to_dict,
    teams_to_yaml,
)

__all__ = [
    # Event bus
    "EventBus",
    # Registry
    "TeamRegistry",
    # Configuration
    "SchedulerConfig",
    "ConfigStore",
    "load_config_from_json",
    # Serialization
    "team_from_dict",
    "team_to_dict",
    "load_teams_from_yaml",
    "load_teams_from_json",
    "load_teams_file",
    "teams_to_yaml",
    "history_to_json",
]

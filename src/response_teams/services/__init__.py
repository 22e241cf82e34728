"""Services layer: gate, roster composition, history and orchestration."""

from response_teams.services.gate import DeploymentGate
from response_teams.services.history import DeploymentHistory, format_round_time
from response_teams.services.orchestrator import DeploymentOrchestrator
from response_teams.services.roster import RosterComposer, can_yield, get_spawns

__all__ = [
    "DeploymentGate",
    "DeploymentHistory",
    "DeploymentOrchestrator",
    "RosterComposer",
    "can_yield",
    "format_round_time",
    "get_spawns",
]

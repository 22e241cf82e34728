"""Response Teams.

On-demand response team deployment scheduler: cooldown gating, exclusive
deployment attempts, quota-driven roster composition and per-round
deployment history.
"""

__version__ = "0.1.0"

from response_teams.services import DeploymentOrchestrator, RosterComposer

__all__ = [
    "DeploymentOrchestrator",
    "RosterComposer",
]

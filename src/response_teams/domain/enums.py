"""Domain enumerations for the response team scheduler.

These enums capture the fixed vocabularies used across the domain layer:
deployment failure reasons and round run levels.
"""

from enum import Enum


class DeploymentFailure(Enum):
    """Reason a deployment attempt did not complete."""

    BUSY = "busy"  # another attempt holds the gate
    UNKNOWN_TEAM = "unknown_team"
    ROUND_NOT_ACTIVE = "round_not_active"
    ON_COOLDOWN = "on_cooldown"
    PROVISION_FAILED = "provision_failed"
    SPAWN_FAILED = "spawn_failed"  # an external collaborator raised mid-spawn


class RunLevel(Enum):
    """Lifecycle stage of the current round."""

    PRE_ROUND = "pre_round"
    IN_ROUND = "in_round"
    POST_ROUND = "post_round"

"""Domain events for the response team scheduler.

Every event is a frozen dataclass inheriting from ``DomainEvent``.  The round
lifecycle source publishes ``RoundStarted`` / ``RoundEnded`` /
``RoundRestarted``; the orchestrator publishes ``TeamDeployed`` and
``DeploymentRejected``.

All events carry a ``timestamp`` and a ``source_id`` identifying the
originating component.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from datetime import timedelta

from .enums import DeploymentFailure

# ---------------------------------------------------------------------------
# Base event
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DomainEvent:
    """Base class for all domain events."""

    timestamp: float = field(default_factory=time.time)
    source_id: str = ""


# ---------------------------------------------------------------------------
# Round lifecycle events
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RoundStarted(DomainEvent):
    """A new round began."""

    round_id: int = 0


@dataclass(frozen=True)
class RoundEnded(DomainEvent):
    """The round finished; end-of-round reports should be produced."""

    round_id: int = 0


@dataclass(frozen=True)
class RoundRestarted(DomainEvent):
    """The round is being torn down for a restart; per-round state is cleared."""

    round_id: int = 0


# ---------------------------------------------------------------------------
# Deployment events
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TeamDeployed(DomainEvent):
    """A response team was deployed."""

    team_id: str = ""
    event_label: str = ""
    caller: str = ""
    round_time: timedelta = timedelta(0)
    spawned_count: int = 0


@dataclass(frozen=True)
class DeploymentRejected(DomainEvent):
    """A deployment attempt failed before or during spawning."""

    team_id: str = ""
    caller: str = ""
    reason: DeploymentFailure | None = None

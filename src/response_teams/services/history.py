"""Deployment history: the per-round log of successful deployments.

Append-only, insertion ordered, cleared on round restart.  The orchestrator
only appends while it holds the deployment gate, so the history needs no
lock of its own.
"""

from __future__ import annotations

from collections.abc import Iterator
from datetime import timedelta

from response_teams.domain.values import DeploymentRecord
from response_teams.infrastructure.serialization import history_to_json


def format_round_time(round_time: timedelta) -> str:
    """Format a round duration as ``hh:mm:ss``."""
    total = int(round_time.total_seconds())
    hours, remainder = divmod(total, 3600)
    minutes, seconds = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


class DeploymentHistory:
    """Ordered record of deployments since the last round restart."""

    def __init__(self) -> None:
        self._records: list[DeploymentRecord] = []

    def append(self, event_label: str, round_time: timedelta, source: str) -> DeploymentRecord:
        """Record a deployment and return the created record."""
        record = DeploymentRecord(event_label=event_label, round_time=round_time, source=source)
        self._records.append(record)
        return record

    @property
    def records(self) -> tuple[DeploymentRecord, ...]:
        """All records (read-only view)."""
        return tuple(self._records)

    def clear(self) -> None:
        self._records.clear()

    def report_lines(self) -> list[str]:
        """One human-readable line per deployment, for the round-end summary."""
        return [
            f"{r.event_label} was called at {format_round_time(r.round_time)} by {r.source}"
            for r in self._records
        ]

    def to_json(self) -> str:
        return history_to_json(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[DeploymentRecord]:
        return iter(tuple(self._records))

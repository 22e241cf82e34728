"""Roster composition for response team deployments.

Turns a team definition, a player count and an optional override into the
concrete list of actor templates to spawn.  No I/O happens here; all
randomness comes from a ``numpy.random.Generator`` so that composition is
reproducible under a fixed seed.

Functions
---------
get_spawns
    One weighted draw over a roster (independent entries plus or-groups).
can_yield
    Whether a roster can ever produce a template.

Classes
-------
RosterComposer
    Quota arithmetic plus guaranteed/optional roster composition.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TypeVar

import numpy as np

from response_teams.domain.values import SpawnEntry, TeamDefinition

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _entry_amount(entry: SpawnEntry, rng: np.random.Generator) -> int:
    if entry.max_amount > entry.amount:
        return int(rng.integers(entry.amount, entry.max_amount + 1))
    return entry.amount


def get_spawns(entries: Sequence[SpawnEntry], rng: np.random.Generator) -> list[str]:
    """Resolve one weighted draw over *entries*.

    Ungrouped entries are rolled independently against their probability
    (an entry at exactly 1.0 needs no roll).  Entries sharing a ``group``
    form an or-group from which exactly one entry is picked, weighted by
    probability.  Groups are resolved after all ungrouped entries, in the
    order their first member appears.
    """
    spawned: list[str] = []
    groups: dict[str, list[SpawnEntry]] = {}

    for entry in entries:
        if entry.group is not None:
            groups.setdefault(entry.group, []).append(entry)
            continue
        if entry.probability != 1.0 and not rng.random() < entry.probability:
            continue
        spawned.extend([entry.template] * _entry_amount(entry, rng))

    for members in groups.values():
        total = sum(m.probability for m in members)
        roll = rng.random() * total
        cumulative = 0.0
        for member in members:
            cumulative += member.probability
            if roll > cumulative:
                continue
            spawned.extend([member.template] * _entry_amount(member, rng))
            break

    return spawned


def _yields_members(entry: SpawnEntry) -> bool:
    return max(entry.amount, entry.max_amount) > 0


def can_yield(entries: Sequence[SpawnEntry]) -> bool:
    """Whether a draw over *entries* can ever produce a template.

    An ungrouped entry counts when it has a positive probability.  An
    or-group counts through any positively weighted member, or through its
    first member when the whole group weighs nothing (that member is then
    always picked).
    """
    groups: dict[str, list[SpawnEntry]] = {}
    for entry in entries:
        if entry.group is not None:
            groups.setdefault(entry.group, []).append(entry)
        elif entry.probability > 0 and _yields_members(entry):
            return True

    for members in groups.values():
        if sum(m.probability for m in members) <= 0:
            if _yields_members(members[0]):
                return True
        elif any(m.probability > 0 and _yields_members(m) for m in members):
            return True
    return False


class RosterComposer:
    """Computes optional quotas and composes rosters for a team.

    Parameters
    ----------
    rng:
        Random generator shared with the caller.  Defaults to a fresh
        ``np.random.default_rng()``.
    override_ceiling:
        Largest explicit override honoured by :meth:`compute_optional_quota`.
    """

    def __init__(
        self,
        rng: np.random.Generator | None = None,
        override_ceiling: int = 15,
    ) -> None:
        self._rng = rng if rng is not None else np.random.default_rng()
        self._override_ceiling = override_ceiling

    def compute_optional_quota(
        self,
        team: TeamDefinition,
        player_count: int,
        override_count: int | None = None,
    ) -> int:
        """Number of optional-roster members to spawn.

        The base count is ``(player_count + S) // S`` with ``S`` the team's
        ``spawn_per_players``.  This is one more than a ceiling division
        when ``player_count`` is an exact multiple of ``S``; the formula is
        kept as-is because team balance is tuned against it.
        """
        per_players = team.spawn_per_players
        quota = min((player_count + per_players) // per_players, team.max_roles_amount)
        if override_count is not None and 0 <= override_count <= self._override_ceiling:
            quota = override_count
        return max(0, quota)

    def compose_guaranteed(self, team: TeamDefinition) -> list[str]:
        """Templates from one draw over the guaranteed roster."""
        if not team.guaranteed_roster:
            return []
        return get_spawns(team.guaranteed_roster, self._rng)

    def compose_optional(self, team: TeamDefinition, quota: int) -> list[str]:
        """Exactly *quota* templates drawn from the optional roster.

        Draws restart from the top of the roster until the quota is filled,
        so templates may repeat; the last draw is truncated.
        """
        if not team.optional_roster or quota <= 0:
            return []
        if not can_yield(team.optional_roster):
            logger.warning(
                "Team %s: optional roster can never produce a member; skipping %d slot(s)",
                team.team_id, quota,
            )
            return []

        result: list[str] = []
        while len(result) < quota:
            drawn = get_spawns(team.optional_roster, self._rng)
            result.extend(drawn[: quota - len(result)])
        return result

    def pick(self, points: Sequence[T]) -> T:
        """Uniformly random element of a non-empty sequence."""
        return points[int(self._rng.integers(len(points)))]

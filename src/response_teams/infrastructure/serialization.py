"""Serialization utilities for the response team scheduler.

Provides ``to_dict`` / ``from_dict`` conversion for team definitions and
deployment records, plus loaders for team files.  Team files are YAML
(via PyYAML) or JSON documents of the form::

    teams:
      - team_id: ert
        label: Emergency Response Team
        transport_template: /Maps/Shuttles/ert.yml
        placement_marker: SpawnPointERT
        spawn_per_players: 10
        max_roles_amount: 4
        guaranteed_roster:
          - {template: ERTLeader}
        optional_roster:
          - {template: ERTEngineer, probability: 0.5, group: support}
          - {template: ERTMedic, probability: 0.5, group: support}

A bare top-level list of teams is accepted too.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from pathlib import Path
from typing import Any

import yaml

from response_teams.domain.exceptions import TeamDefinitionError
from response_teams.domain.values import (
    Announcement,
    DeploymentRecord,
    RaffleConfig,
    SpawnEntry,
    TeamDefinition,
)

logger = logging.getLogger(__name__)


# =========================================================================== #
#  Roster entries                                                              #
# =========================================================================== #

def spawn_entry_to_dict(entry: SpawnEntry) -> dict[str, Any]:
    data: dict[str, Any] = {
        "template": entry.template,
        "probability": entry.probability,
        "amount": entry.amount,
        "max_amount": entry.max_amount,
    }
    if entry.group is not None:
        data["group"] = entry.group
    return data


def spawn_entry_from_dict(data: dict[str, Any] | str) -> SpawnEntry:
    """Build an entry; a bare string is shorthand for ``{template: <str>}``."""
    if isinstance(data, str):
        return SpawnEntry(template=data)
    amount = int(data.get("amount", 1))
    return SpawnEntry(
        template=str(data["template"]),
        probability=float(data.get("probability", 1.0)),
        amount=amount,
        max_amount=int(data.get("max_amount", amount)),
        group=data.get("group"),
    )


# =========================================================================== #
#  Team definitions                                                            #
# =========================================================================== #

def raffle_to_dict(raffle: RaffleConfig) -> dict[str, Any]:
    return {
        "initial_duration": raffle.initial_duration,
        "join_extends_duration_by": raffle.join_extends_duration_by,
        "max_duration": raffle.max_duration,
        "settings": raffle.settings,
    }


def raffle_from_dict(data: dict[str, Any]) -> RaffleConfig:
    return RaffleConfig(
        initial_duration=int(data.get("initial_duration", 30)),
        join_extends_duration_by=int(data.get("join_extends_duration_by", 10)),
        max_duration=int(data.get("max_duration", 90)),
        settings=data.get("settings"),
    )


def team_to_dict(team: TeamDefinition) -> dict[str, Any]:
    return {
        "team_id": team.team_id,
        "label": team.label,
        "transport_template": team.transport_template,
        "placement_marker": team.placement_marker,
        "guaranteed_roster": [spawn_entry_to_dict(e) for e in team.guaranteed_roster],
        "optional_roster": [spawn_entry_to_dict(e) for e in team.optional_roster],
        "spawn_per_players": team.spawn_per_players,
        "max_roles_amount": team.max_roles_amount,
        "raffle": raffle_to_dict(team.raffle) if team.raffle is not None else None,
        "announcement": {
            "title_key": team.announcement.title_key,
            "body_key": team.announcement.body_key,
            "sound": team.announcement.sound,
            "color": team.announcement.color,
        },
    }


def team_from_dict(data: dict[str, Any]) -> TeamDefinition:
    """Build and validate a ``TeamDefinition``.

    Raises ``TeamDefinitionError`` when required keys are missing or the
    resulting definition is invalid.
    """
    if not isinstance(data, dict):
        raise TeamDefinitionError(f"Team entry must be a mapping, got {type(data).__name__}")
    try:
        team_id = str(data["team_id"])
    except KeyError:
        raise TeamDefinitionError("Team entry is missing 'team_id'") from None

    raffle_data = data.get("raffle")
    announcement_data = data.get("announcement") or {}
    try:
        team = TeamDefinition(
            team_id=team_id,
            label=str(data.get("label", "")),
            transport_template=str(data.get("transport_template", "")),
            placement_marker=str(data.get("placement_marker", "")),
            guaranteed_roster=tuple(
                spawn_entry_from_dict(e) for e in data.get("guaranteed_roster") or ()
            ),
            optional_roster=tuple(
                spawn_entry_from_dict(e) for e in data.get("optional_roster") or ()
            ),
            spawn_per_players=int(data.get("spawn_per_players", 10)),
            max_roles_amount=int(data.get("max_roles_amount", 999)),
            raffle=raffle_from_dict(raffle_data) if raffle_data else None,
            announcement=Announcement(
                title_key=announcement_data.get("title_key"),
                body_key=announcement_data.get("body_key"),
                sound=announcement_data.get("sound"),
                color=announcement_data.get("color"),
            ),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise TeamDefinitionError(
            f"Team {team_id!r} could not be parsed: {exc}", team_id=team_id
        ) from exc
    team.validate()
    return team


def teams_from_document(document: Any) -> list[TeamDefinition]:
    """Extract team definitions from a parsed YAML/JSON document."""
    if document is None:
        return []
    if isinstance(document, dict):
        document = document.get("teams", [])
    if not isinstance(document, list):
        raise TeamDefinitionError("Team document must be a list or contain a 'teams' list")
    return [team_from_dict(item) for item in document]


def load_teams_from_yaml(text: str) -> list[TeamDefinition]:
    try:
        document = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise TeamDefinitionError(f"Invalid team YAML: {exc}") from exc
    return teams_from_document(document)


def load_teams_from_json(text: str) -> list[TeamDefinition]:
    try:
        document = json.loads(text)
    except json.JSONDecodeError as exc:
        raise TeamDefinitionError(f"Invalid team JSON: {exc}") from exc
    return teams_from_document(document)


def load_teams_file(path: str | Path) -> list[TeamDefinition]:
    """Load teams from *path*, choosing the parser from the file suffix."""
    path = Path(path)
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() == ".json":
        teams = load_teams_from_json(text)
    else:
        teams = load_teams_from_yaml(text)
    logger.info("Loaded %d team definition(s) from %s", len(teams), path)
    return teams


def teams_to_yaml(teams: Sequence[TeamDefinition]) -> str:
    return yaml.safe_dump(
        {"teams": [team_to_dict(t) for t in teams]},
        default_flow_style=False,
        sort_keys=False,
    )


# =========================================================================== #
#  Deployment history                                                          #
# =========================================================================== #

def record_to_dict(record: DeploymentRecord) -> dict[str, Any]:
    return {
        "event_label": record.event_label,
        "round_time_seconds": record.round_time.total_seconds(),
        "source": record.source,
    }


def history_to_json(records: Sequence[DeploymentRecord]) -> str:
    return json.dumps([record_to_dict(r) for r in records], indent=2)

"""Command-line interface for the response team scheduler.

Provides subcommands for inspecting team files and simulating deployments
against the in-memory sandbox world.

Entry point
-----------
The ``main()`` function is registered as a console script in
``pyproject.toml``::

    [project.scripts]
    response-teams = "response_teams.cli:main"

Usage examples::

    response-teams teams --teams teams.yaml
    response-teams quota --teams teams.yaml --players 23
    response-teams simulate --teams teams.yaml --team ert --players 23 --repeat 3
"""

from __future__ import annotations

import argparse
import logging
import sys
from collections import Counter
from typing import Any


def _add_teams_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--teams",
        type=str,
        required=True,
        help="Path to a YAML or JSON team definition file.",
    )


def _build_parser() -> argparse.ArgumentParser:
    """Build the top-level argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog="response-teams",
        description="Response team deployment scheduler -- inspect teams and simulate deployments.",
    )
    parser.add_argument(
        "--version",
        action="store_true",
        default=False,
        help="Show version and exit.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        default=False,
        help="Enable debug logging.",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available subcommands")

    # -- teams -------------------------------------------------------------
    teams_parser = subparsers.add_parser(
        "teams",
        help="List team definitions.",
        description="Load a team file and list the teams it defines.",
    )
    _add_teams_argument(teams_parser)

    # -- quota -------------------------------------------------------------
    quota_parser = subparsers.add_parser(
        "quota",
        help="Show optional roster quotas.",
        description="Compute the optional roster quota of every team for a player count.",
    )
    _add_teams_argument(quota_parser)
    quota_parser.add_argument(
        "--players",
        type=int,
        required=True,
        help="Connected player count.",
    )
    quota_parser.add_argument(
        "--extra",
        type=int,
        default=None,
        help="Explicit optional roster override.",
    )

    # -- simulate ----------------------------------------------------------
    sim_parser = subparsers.add_parser(
        "simulate",
        help="Simulate deployments in a sandbox round.",
        description="Deploy a team one or more times against the in-memory sandbox world.",
    )
    _add_teams_argument(sim_parser)
    sim_parser.add_argument("--team", type=str, required=True, help="Team id to deploy.")
    sim_parser.add_argument(
        "--players",
        type=int,
        default=20,
        help="Connected player count. (default: 20)",
    )
    sim_parser.add_argument("--extra", type=int, default=None, help="Optional roster override.")
    sim_parser.add_argument(
        "--force",
        action="store_true",
        default=False,
        help="Ignore the cooldown.",
    )
    sim_parser.add_argument(
        "--repeat",
        type=int,
        default=1,
        help="Number of deployment attempts. (default: 1)",
    )
    sim_parser.add_argument(
        "--interval",
        type=float,
        default=5.0,
        help="Round minutes between attempts. (default: 5)",
    )
    sim_parser.add_argument(
        "--cooldown",
        type=float,
        default=15.0,
        help="Cooldown in minutes. (default: 15)",
    )
    sim_parser.add_argument("--seed", type=int, default=None, help="Roster random seed.")
    sim_parser.add_argument(
        "--source",
        type=str,
        default="cli",
        help="Recorded caller of the deployments. (default: cli)",
    )

    return parser


# =========================================================================
# Subcommand handlers
# =========================================================================

def _cmd_teams(args: argparse.Namespace) -> int:
    """Handle the ``teams`` subcommand."""
    from response_teams.infrastructure.serialization import load_teams_file

    teams = load_teams_file(args.teams)
    if not teams:
        print("No teams defined.")
        return 0
    for team in teams:
        print(f"{team.team_id}: {team.event_label}")
        print(f"  transport:   {team.transport_template} (marker {team.placement_marker or '-'})")
        print(f"  guaranteed:  {', '.join(e.template for e in team.guaranteed_roster) or '-'}")
        print(f"  optional:    {', '.join(e.template for e in team.optional_roster) or '-'}")
        print(f"  quota:       1 per {team.spawn_per_players} players, max {team.max_roles_amount}")
        print(f"  announced:   {'no' if team.announcement.is_silent else 'yes'}")
    return 0


def _cmd_quota(args: argparse.Namespace) -> int:
    """Handle the ``quota`` subcommand."""
    from response_teams.infrastructure.serialization import load_teams_file
    from response_teams.services.roster import RosterComposer

    composer = RosterComposer()
    for team in load_teams_file(args.teams):
        quota = composer.compute_optional_quota(team, args.players, args.extra)
        print(f"{team.team_id:<24} {quota}")
    return 0


def _cmd_simulate(args: argparse.Namespace) -> int:
    """Handle the ``simulate`` subcommand."""
    from response_teams.domain.enums import DeploymentFailure
    from response_teams.infrastructure.config import ConfigStore, SchedulerConfig
    from response_teams.infrastructure.registry import TeamRegistry
    from response_teams.infrastructure.serialization import load_teams_file
    from response_teams.services.orchestrator import DeploymentOrchestrator
    from response_teams.world.sandbox import SandboxWorld

    registry = TeamRegistry(load_teams_file(args.teams))
    world = SandboxWorld(player_count=args.players)
    for team in registry:
        world.add_transport(
            team.transport_template,
            {team.placement_marker: [(0.0, 0.0), (1.0, 0.0), (0.0, 1.0), (1.0, 1.0)]},
        )

    config = ConfigStore(SchedulerConfig(cooldown_minutes=args.cooldown, seed=args.seed))
    orchestrator = DeploymentOrchestrator(
        registry, world, world, world, world, world,
        config=config,
        event_bus=world.event_bus,
    )
    orchestrator.bind(world.event_bus)

    world.start_round()
    for attempt in range(args.repeat):
        if attempt:
            world.advance(minutes=args.interval)
        result = orchestrator.deploy(
            args.team,
            source=args.source,
            override_extra=args.extra,
            force=args.force,
        )
        elapsed = world.round_elapsed()
        if result:
            roster = Counter(actor.template for actor in result.spawned)
            print(f"[{elapsed}] deployed {args.team}: {len(result.spawned)} actor(s)")
            for template, count in sorted(roster.items()):
                print(f"    {count} x {template}")
        else:
            reason = result.reason.value if result.reason is not None else "unknown"
            print(f"[{elapsed}] {args.team} rejected: {reason}")
            if result.reason is DeploymentFailure.ON_COOLDOWN:
                print(f"    cooldown remaining: {orchestrator.cooldown_remaining()}")

    print()
    print("Round report:")
    for line in orchestrator.round_end_report() or ["(no deployments)"]:
        print(f"  {line}")
    world.end_round()
    return 0


# =========================================================================
# Main entry point
# =========================================================================

def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.version:
        from response_teams import __version__
        print(f"response-teams {__version__}")
        sys.exit(0)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    handlers: dict[str, Any] = {
        "teams": _cmd_teams,
        "quota": _cmd_quota,
        "simulate": _cmd_simulate,
    }

    handler = handlers.get(args.command)
    if handler is None:
        parser.print_help()
        sys.exit(1)

    try:
        exit_code = handler(args)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        exit_code = 130
    except Exception as exc:
        print(f"Error: {exc}", file=sys.stderr)
        exit_code = 1

    sys.exit(exit_code)


if __name__ == "__main__":
    main()

"""
Management command to generate a draw from a player list:
- Knockout: seeded bracket with byes resolved
- Round robin: group assignment and shared-matchday fixtures

The draw is printed as JSON rows ready for the caller to persist.
"""

import json

from django.core.management.base import BaseCommand, CommandError

from sadhanam.tournament.management.commands._helpers import load_json, raise_for_result
from sadhanam.tournament.snapshots import (
    SnapshotError,
    bracket_to_rows,
    config_from_row,
    group_to_row,
    players_from_rows,
    round_robin_matches_to_rows,
)
from sadhanam.tournament_core.stages import plan_knockout_stage, plan_round_robin_stage


class Command(BaseCommand):
    help = "Generate a knockout bracket or round-robin fixtures from a player list"

    def add_arguments(self, parser):
        parser.add_argument(
            "players_file",
            help="JSON file holding a list of player rows, or an object with 'players'",
        )
        parser.add_argument(
            "--format",
            choices=["knockout", "round_robin"],
            default="knockout",
            help="Draw to generate (default: knockout)",
        )
        parser.add_argument(
            "--groups",
            type=int,
            default=1,
            help="Number of round-robin groups (default: 1)",
        )
        parser.add_argument(
            "--advance",
            type=int,
            default=2,
            help="Players advancing from each group (default: 2)",
        )
        parser.add_argument(
            "--rng-seed",
            type=int,
            default=None,
            help="Seed for the unseeded shuffle; the same seed reproduces the draw",
        )
        parser.add_argument(
            "--offset",
            type=int,
            default=0,
            help="Highest match number already in use (default: 0)",
        )

    def handle(self, *args, **options):
        data = load_json(options["players_file"])
        rows = data.get("players", []) if isinstance(data, dict) else data
        try:
            players = players_from_rows(rows)
        except SnapshotError as e:
            raise CommandError(str(e))

        self.stderr.write(
            self.style.WARNING(
                f"Generating {options['format'].replace('_', ' ')} draw "
                f"for {len(players)} players..."
            )
        )

        if options["format"] == "knockout":
            bracket = raise_for_result(
                plan_knockout_stage(
                    players,
                    rng_seed=options["rng_seed"],
                    match_number_offset=options["offset"],
                )
            )
            output = bracket_to_rows(bracket)
            summary = (
                f"✓ {bracket.bracket_size}-slot bracket, {bracket.bye_count} byes, "
                f"{bracket.total_rounds} rounds"
            )
        else:
            config = config_from_row(
                {
                    "number_of_groups": options["groups"],
                    "advance_count": options["advance"],
                }
            )
            plan = raise_for_result(
                plan_round_robin_stage(
                    players,
                    config,
                    rng_seed=options["rng_seed"],
                    match_number_offset=options["offset"],
                )
            )
            output = {
                "groups": [group_to_row(g) for g in plan.groups],
                "matches": round_robin_matches_to_rows(plan.matches),
            }
            summary = f"✓ {len(plan.groups)} groups, {len(plan.matches)} fixtures"

        self.stdout.write(json.dumps(output, indent=2))
        self.stderr.write(self.style.SUCCESS(summary))

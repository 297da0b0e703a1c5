"""
Management command to generate a demo player list with realistic names and
clubs, for trying out draws with ``generate_draw``.
"""

import json

from django.core.management.base import BaseCommand, CommandError
from faker import Faker

from sadhanam.tournament.snapshots import player_to_row
from sadhanam.tournament_core import conf
from sadhanam.tournament_core.structure import Player


class Command(BaseCommand):
    help = "Generate a demo player list as JSON"

    def add_arguments(self, parser):
        parser.add_argument(
            "--count",
            type=int,
            default=16,
            help="Number of players (default: 16)",
        )
        parser.add_argument(
            "--seeded",
            type=int,
            default=4,
            help="How many players receive seeds 1..N (default: 4)",
        )
        parser.add_argument(
            "--clubs",
            type=int,
            default=4,
            help="Number of distinct clubs to spread players across (default: 4)",
        )
        parser.add_argument(
            "--locale",
            type=str,
            default="en_US",
            help="Faker locale for name generation (default: en_US)",
        )
        parser.add_argument(
            "--faker-seed",
            type=int,
            default=None,
            help="Seed Faker for a reproducible list",
        )
        parser.add_argument(
            "--output",
            type=str,
            default=None,
            help="Write to this file instead of stdout",
        )

    def handle(self, *args, **options):
        count = options["count"]
        seeded = options["seeded"]
        if count < 2:
            raise CommandError("At least 2 players are needed")
        if not 0 <= seeded <= min(count, conf.max_seed()):
            raise CommandError(
                f"Seeded players must be between 0 and {min(count, conf.max_seed())}"
            )

        fake = Faker(options["locale"])
        if options["faker_seed"] is not None:
            fake.seed_instance(options["faker_seed"])

        clubs = [f"{fake.city()} TTC" for _ in range(max(1, options["clubs"]))]
        players = [
            Player(
                player_id=f"p{i:03d}",
                name=fake.name(),
                seed=i if i <= seeded else None,
                club=clubs[(i - 1) % len(clubs)],
            )
            for i in range(1, count + 1)
        ]
        output = json.dumps({"players": [player_to_row(p) for p in players]}, indent=2)

        if options["output"]:
            with open(options["output"], "w") as f:
                f.write(output)
            self.stdout.write(
                self.style.SUCCESS(f"✓ Wrote {count} players to {options['output']}")
            )
        else:
            self.stdout.write(output)

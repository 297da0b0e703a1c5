"""
Management command to print group standings and qualifiers for a
round-robin snapshot.
"""

import json

from django.core.management.base import BaseCommand, CommandError

from sadhanam.tournament.management.commands._helpers import load_json, raise_for_result
from sadhanam.tournament.snapshots import (
    SnapshotError,
    qualifiers_to_rows,
    snapshot_from_data,
    standings_to_rows,
)
from sadhanam.tournament_core.qualifiers import (
    avoid_same_group_clashes,
    extract_qualifiers,
)
from sadhanam.tournament_core.standings import (
    compute_all_group_standings,
    group_matches,
    group_progress,
)


class Command(BaseCommand):
    help = "Show round-robin group standings and the resulting qualifiers"

    def add_arguments(self, parser):
        parser.add_argument("snapshot_file", help="JSON tournament snapshot")
        parser.add_argument(
            "--json",
            action="store_true",
            help="Print standings and qualifiers as JSON instead of tables",
        )

    def handle(self, *args, **options):
        try:
            snapshot = snapshot_from_data(load_json(options["snapshot_file"]))
        except SnapshotError as e:
            raise CommandError(str(e))

        standings = raise_for_result(
            compute_all_group_standings(
                snapshot.groups, snapshot.players, snapshot.matches, snapshot.config
            )
        )
        qualifiers = extract_qualifiers(standings, snapshot.config)
        ordered = avoid_same_group_clashes(qualifiers.value) if qualifiers.ok else ()

        if options["json"]:
            self.stdout.write(
                json.dumps(
                    {
                        "standings": standings_to_rows(standings),
                        "qualifiers": qualifiers_to_rows(ordered),
                    },
                    indent=2,
                )
            )
            return

        for gs in standings:
            progress = group_progress(group_matches(gs.group, snapshot.matches))
            self.stdout.write(
                self.style.WARNING(
                    f"{gs.group.name} ({progress.completed}/{progress.total} matches complete)"
                )
            )
            self.stdout.write("  #  Player                 P  W  L  GD   PD")
            for s in gs.standings:
                marker = "*" if s.advances else " "
                self.stdout.write(
                    f"{marker}{s.rank:>2}  {s.name[:20]:<20} {s.matches_played:>2} "
                    f"{s.wins:>2} {s.losses:>2} {s.game_difference:>3} "
                    f"{s.points_difference:>4}"
                )

        if not qualifiers.ok:
            self.stdout.write(self.style.ERROR(qualifiers.first_error.message))
            return
        self.stdout.write(self.style.SUCCESS("Qualifiers:"))
        for q in ordered:
            extra = " (best placed)" if q.is_best_placed else ""
            self.stdout.write(
                f"  {q.ko_seed:>2}. {q.name} - {q.group_name} #{q.rr_rank}{extra}"
            )

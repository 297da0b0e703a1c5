from django.apps import AppConfig


class TournamentConfig(AppConfig):
    name = "sadhanam.tournament"
    verbose_name = "Tournament Snapshots"

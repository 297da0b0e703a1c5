from django.apps import AppConfig


class TournamentCoreConfig(AppConfig):
    name = "sadhanam.tournament_core"
    verbose_name = "Tournament Format Engine"

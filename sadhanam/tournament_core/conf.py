"""
App settings for tournament_core.

Limits are read from ``django.conf.settings`` when a settings module is
configured, so a deployment can override them with ``SADHANAM_*`` entries.
The engine also runs without Django settings (plain unittest runs, scripts),
in which case the defaults below apply.
"""

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured

DEFAULTS = {
    "SADHANAM_MAX_BRACKET_PLAYERS": 256,
    "SADHANAM_MAX_GROUPS": 16,
    "SADHANAM_MAX_GROUP_SIZE": 32,
    "SADHANAM_MAX_SEED": 64,
    "SADHANAM_DEFAULT_MATCH_FORMAT": "bo3",
}


def get_setting(name):
    if name not in DEFAULTS:
        raise KeyError(f"Unknown tournament_core setting: {name}")
    try:
        return getattr(settings, name, DEFAULTS[name])
    except ImproperlyConfigured:
        return DEFAULTS[name]


def max_bracket_players() -> int:
    return get_setting("SADHANAM_MAX_BRACKET_PLAYERS")


def max_groups() -> int:
    return get_setting("SADHANAM_MAX_GROUPS")


def max_group_size() -> int:
    return get_setting("SADHANAM_MAX_GROUP_SIZE")


def max_seed() -> int:
    return get_setting("SADHANAM_MAX_SEED")


def default_match_format() -> str:
    return get_setting("SADHANAM_DEFAULT_MATCH_FORMAT")

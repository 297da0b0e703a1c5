"""
Django settings for the sadhanam tournament engine.

The project has no database models and serves no pages; Django provides the
app registry, settings, management commands and the test runner.
"""

import os

BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

SECRET_KEY = os.environ.get("SADHANAM_SECRET_KEY", "sadhanam-local-only")

DEBUG = os.environ.get("SADHANAM_DEBUG", "") == "1"

ALLOWED_HOSTS = []

INSTALLED_APPS = [
    "sadhanam.tournament_core",
    "sadhanam.tournament",
]

MIDDLEWARE = []

DATABASES = {}

USE_TZ = True

# Engine limits, see sadhanam.tournament_core.conf
SADHANAM_MAX_BRACKET_PLAYERS = 256
SADHANAM_MAX_GROUPS = 16
SADHANAM_MAX_GROUP_SIZE = 32
SADHANAM_MAX_SEED = 64
SADHANAM_DEFAULT_MATCH_FORMAT = os.environ.get("SADHANAM_DEFAULT_MATCH_FORMAT", "bo3")

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "verbose": {
            "format": "%(asctime)s %(levelname)s %(name)s: %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "verbose",
        },
    },
    "loggers": {
        "sadhanam": {
            "handlers": ["console"],
            "level": "DEBUG" if DEBUG else "INFO",
            "propagate": False,
        },
    },
}

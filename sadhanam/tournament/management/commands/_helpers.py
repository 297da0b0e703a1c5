import json

from django.core.management.base import CommandError


def load_json(path):
    try:
        with open(path) as f:
            return json.load(f)
    except OSError as e:
        raise CommandError(f"Cannot read {path}: {e}")
    except json.JSONDecodeError as e:
        raise CommandError(f"{path} is not valid JSON: {e}")


def raise_for_result(result):
    """Turn a failed engine result into a CommandError listing every problem."""
    if not result.ok:
        raise CommandError(
            "; ".join(f"[{e.code.value}] {e.message}" for e in result.errors)
        )
    return result.value

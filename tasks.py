from invoke import task
from pathlib import Path

# Get project root directory
PROJECT_ROOT = Path(__file__).parent.absolute()


def project_relative(path):
    """Convert a relative path to an absolute path relative to the project root."""
    return str(PROJECT_ROOT / path)


@task
def update(c):
    """Update all dependencies to their latest versions using poetry."""
    c.run("poetry update")


@task
def up(c):
    """Alias for update - update all dependencies to their latest versions."""
    update(c)


@task
def test(c, path=None):
    """Run Django tests. Optionally specify a specific test path."""
    manage_py = project_relative("manage.py")
    settings = "--settings=sadhanam.test_settings"
    if path:
        c.run(f"python {manage_py} test {path} {settings}")
    else:
        c.run(f"python {manage_py} test {settings}")


@task
def demo_players(c, count=16, seeded=4, output="players.json"):
    """Write a demo player list to a JSON file."""
    manage_py = project_relative("manage.py")
    c.run(
        f"python {manage_py} seed_demo_players --count {count} "
        f"--seeded {seeded} --output {output}"
    )


@task
def draw(c, players="players.json", format="knockout", groups=1, rng_seed=None):
    """Generate a draw from a JSON player list."""
    manage_py = project_relative("manage.py")
    command = f"python {manage_py} generate_draw {players} --format {format} --groups {groups}"
    if rng_seed is not None:
        command += f" --rng-seed {rng_seed}"
    c.run(command)


@task
def standings(c, snapshot):
    """Print standings and qualifiers for a round-robin snapshot."""
    manage_py = project_relative("manage.py")
    c.run(f"python {manage_py} show_standings {snapshot}")
